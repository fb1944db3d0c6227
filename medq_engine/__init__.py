"""
medq-engine: adaptive learning core for medical exam preparation.

Pure, side-effect-free components. Callers fetch snapshots from storage,
pass the clock in, and persist whatever comes back.
"""

__version__ = "1.0.0"
