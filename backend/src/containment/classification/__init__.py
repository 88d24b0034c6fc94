"""Fault classification: fingerprints, sampling and categories."""
from .categories import CATEGORY_INDICATORS, categorize
from .classifier import ErrorClassifier
from .fingerprint import fallback_fingerprint, fingerprint_fault, sample_value

__all__ = [
    "ErrorClassifier",
    "CATEGORY_INDICATORS",
    "categorize",
    "fingerprint_fault",
    "fallback_fingerprint",
    "sample_value",
]
