"""
Assessment Catalog - Static Level Profiles and Topic Library.

Immutable reference tables built once at import time. Level names coming
from clients are free-form ("md5l", "Doctor Postgraduate") and are
normalized against the catalog; unknown levels resolve to MD3.
"""

from __future__ import annotations

import re
from types import MappingProxyType

from medq_engine.core.models import AssessmentLevelProfile

DEFAULT_LEVEL_ID = "MD3"
GENERAL_TAG = "general"

ASSESSMENT_LEVELS: tuple[AssessmentLevelProfile, ...] = (
    AssessmentLevelProfile(
        id="MD1",
        label="MD1 (Foundations)",
        description="Core pre-clinical recall and basic mechanisms.",
        min_difficulty=1,
        max_difficulty=2,
        target_time_sec=80,
        recommended_daily_minutes=45,
    ),
    AssessmentLevelProfile(
        id="MD2",
        label="MD2 (Integrated Basics)",
        description="System integration and early clinical application.",
        min_difficulty=2,
        max_difficulty=3,
        target_time_sec=75,
        recommended_daily_minutes=60,
    ),
    AssessmentLevelProfile(
        id="MD3",
        label="MD3 (Clinical Core)",
        description="Clinical reasoning with common presentations.",
        min_difficulty=2,
        max_difficulty=4,
        target_time_sec=70,
        recommended_daily_minutes=75,
    ),
    AssessmentLevelProfile(
        id="MD4",
        label="MD4 (Advanced Clinical)",
        description="Complex cases, management trade-offs, prioritization.",
        min_difficulty=3,
        max_difficulty=4,
        target_time_sec=65,
        recommended_daily_minutes=90,
    ),
    AssessmentLevelProfile(
        id="MD5",
        label="MD5 (Senior Clinical)",
        description="High-yield exam synthesis and advanced differentials.",
        min_difficulty=3,
        max_difficulty=5,
        target_time_sec=60,
        recommended_daily_minutes=105,
    ),
    AssessmentLevelProfile(
        id="INTERN",
        label="Doctor Intern",
        description="Fast, safe clinical decisions in frontline workflow.",
        min_difficulty=3,
        max_difficulty=5,
        target_time_sec=58,
        recommended_daily_minutes=110,
    ),
    AssessmentLevelProfile(
        id="RESIDENT",
        label="Resident",
        description="Higher-acuity management and protocol-level decisions.",
        min_difficulty=4,
        max_difficulty=5,
        target_time_sec=55,
        recommended_daily_minutes=120,
    ),
    AssessmentLevelProfile(
        id="POSTGRADUATE",
        label="Doctor Postgraduate",
        description="Subspecialty-level nuance and high-complexity reasoning.",
        min_difficulty=4,
        max_difficulty=5,
        target_time_sec=50,
        recommended_daily_minutes=135,
    ),
)

_LEVELS_BY_ID = MappingProxyType({level.id: level for level in ASSESSMENT_LEVELS})

LEVEL_ALIASES = MappingProxyType({
    "MD5L": "MD5",
    "MD5LEVEL": "MD5",
    "DOCTORPOSTGRADUATE": "POSTGRADUATE",
    "POSTGRAD": "POSTGRADUATE",
    "PG": "POSTGRADUATE",
    "RESIDENCY": "RESIDENT",
})

# (id, label, description)
TOPIC_LIBRARY: tuple[tuple[str, str, str], ...] = (
    ("cardiology", "Cardiology", "Cardiac physiology, pathology, and management."),
    ("respiratory", "Respiratory", "Pulmonary medicine and gas exchange disorders."),
    ("renal", "Renal", "Nephrology, acid-base, and fluid-electrolyte balance."),
    ("gastroenterology", "Gastroenterology", "GI physiology, hepatology, and pancreatobiliary topics."),
    ("endocrine", "Endocrine", "Hormonal regulation and endocrine disease patterns."),
    ("neurology", "Neurology", "Neuroanatomy, localization, and neurological syndromes."),
    ("hematology", "Hematology", "Blood disorders, coagulation, and transfusion principles."),
    ("infectious-disease", "Infectious Disease", "Microbiology, antimicrobials, and infection control."),
    ("pharmacology", "Pharmacology", "Drug mechanisms, interactions, safety, and therapeutics."),
    ("immunology", "Immunology", "Immune mechanisms, hypersensitivity, and autoimmunity."),
    ("surgery", "Surgery", "Perioperative, trauma, and surgical decision-making."),
    ("pediatrics", "Pediatrics", "Child health, growth, and age-specific management."),
    ("obgyn", "Obstetrics & Gynecology", "Pregnancy, reproductive health, and gynecologic disease."),
    ("psychiatry", "Psychiatry", "Psychiatric diagnosis, pharmacotherapy, and crisis care."),
    ("emergency", "Emergency Medicine", "Acute care prioritization and emergency protocols."),
)

_NON_ALNUM_UPPER = re.compile(r"[^A-Z0-9]")
_WHITESPACE = re.compile(r"\s+")


def normalize_topic_tag(tag: str | None) -> str:
    """'Infectious Disease ' -> 'infectious-disease'."""
    return _WHITESPACE.sub("-", str(tag or "").strip().lower())


def normalize_assessment_level(level: str | None) -> str:
    """Resolve a free-form level name to a catalog id (unknown -> MD3)."""
    compact = _NON_ALNUM_UPPER.sub("", str(level or "").upper())
    resolved = LEVEL_ALIASES.get(compact, compact)
    return resolved if resolved in _LEVELS_BY_ID else DEFAULT_LEVEL_ID


def get_assessment_level(level: str | AssessmentLevelProfile | None) -> AssessmentLevelProfile:
    """Look up a level profile; profiles pass through unchanged."""
    if isinstance(level, AssessmentLevelProfile):
        return level
    return _LEVELS_BY_ID[normalize_assessment_level(level)]
