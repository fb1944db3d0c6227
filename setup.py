"""
Setup script for medq-engine.

medq-engine is the adaptive learning core of the MedQ medical-exam
study app. It provides four pure components:

1. Card Scheduler - FSRS memory model for topic review cards
2. Weakness Analyzer - Per-topic weakness ranking from answer history
3. Assessment Selector - Diverse, difficulty-matched question sets
4. Recommendation Synthesizer - Remediation plans from weakness profiles

The 'medq' command is a thin JSON-in/JSON-out wrapper around the core.
"""

from setuptools import find_packages, setup

setup(
    name="medq-engine",
    version="1.0.0",
    description="Adaptive learning engine for medical exam preparation",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="MedQ",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "medq=medq_engine.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition fsrs medical education assessment",
)
