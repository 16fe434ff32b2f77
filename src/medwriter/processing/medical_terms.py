"""Medical vocabulary lookups used to flag clinical writing for analysis."""
from __future__ import annotations

import logging
import re
from typing import List

from .models import MedicalContext, MedicalTerms

LOGGER = logging.getLogger(__name__)

ABBREVIATIONS = frozenset(
    {
        "BP", "HR", "ECG", "EKG", "MRI", "CT", "CBC", "BUN", "CHF", "COPD", "MI", "CVA",
        "ICU", "ER", "OR", "IV", "IM", "PO", "PRN", "BID", "TID", "QID", "QD",
    }
)
# Abbreviations that are also everyday English words only count in upper case.
_CASE_SENSITIVE_ABBREVIATIONS = frozenset({"OR", "ER", "IM", "MI", "PO"})
UNITS = frozenset({"mg", "ml", "mmhg", "bpm", "kg", "cm", "mm", "l", "dl", "mcg", "iu"})
ANATOMICAL_TERMS = frozenset(
    {
        "myocardium", "pericardium", "endocardium", "ventricle", "atrium", "aorta",
        "pulmonary", "hepatic", "renal", "cardiac", "thoracic", "abdominal",
    }
)
GENERAL_TERMS = frozenset(
    {
        "diagnosis", "prognosis", "etiology", "pathophysiology", "symptom", "syndrome",
        "treatment", "therapy", "medication", "dosage", "contraindication",
    }
)
PREFIXES = frozenset(
    {"cardio", "neuro", "gastro", "hepato", "nephro", "pulmo", "osteo", "hemo", "pneumo", "dermato", "endo", "exo"}
)
SUFFIXES = frozenset(
    {"itis", "osis", "emia", "pathy", "gram", "scopy", "tomy", "ectomy", "plasty", "logy", "ology", "megaly"}
)
LATIN_PHRASES = (
    "in situ",
    "per os",
    "ad libitum",
    "pro re nata",
    "ante cibum",
    "post cibum",
    "bis in die",
    "ter in die",
    "quater in die",
    "sub lingua",
    "per rectum",
)

_WORD_RE = re.compile(r"\b\w+\b")
_LATIN_RE = re.compile(r"\b(" + "|".join(re.escape(phrase) for phrase in LATIN_PHRASES) + r")\b", re.IGNORECASE)


def _is_abbreviation(word: str) -> bool:
    if word in ABBREVIATIONS:
        return True
    upper = word.upper()
    return upper in ABBREVIATIONS and upper not in _CASE_SENSITIVE_ABBREVIATIONS


def is_medical_term(word: str) -> bool:
    lower = word.lower()
    return (
        _is_abbreviation(word)
        or lower in UNITS
        or lower in ANATOMICAL_TERMS
        or lower in GENERAL_TERMS
        or lower in PREFIXES
        or lower in SUFFIXES
    )


def _unique(items: List[str]) -> tuple:
    return tuple(dict.fromkeys(items))


def extract_medical_terms(text: str) -> MedicalTerms:
    abbreviations: List[str] = []
    anatomical: List[str] = []
    general: List[str] = []

    for word in _WORD_RE.findall(text):
        if not is_medical_term(word):
            continue
        if _is_abbreviation(word) or word.lower() in UNITS:
            abbreviations.append(word)
        elif word.lower() in ANATOMICAL_TERMS:
            anatomical.append(word)
        else:
            general.append(word)

    latin = [match.group(1).lower() for match in _LATIN_RE.finditer(text)]
    return MedicalTerms(
        abbreviations=_unique(abbreviations),
        anatomical_terms=_unique(anatomical),
        general_terms=_unique(general),
        latin_terms=_unique(latin),
    )


def calculate_medical_confidence(text: str) -> float:
    """Share of medical words, saturating once a tenth of the words are medical."""

    words = _WORD_RE.findall(text)
    if not words:
        return 0.0
    medical = sum(1 for word in words if is_medical_term(word))
    medical += len(_LATIN_RE.findall(text))
    return min(medical / max(len(words) * 0.1, 1), 1.0)


def analyze_medical_context(text: str) -> MedicalContext:
    terms = extract_medical_terms(text)
    confidence = calculate_medical_confidence(text)
    LOGGER.debug(
        "Medical context: %s abbreviations, %s terms, confidence %.2f",
        len(terms.abbreviations),
        len(terms.general_terms) + len(terms.anatomical_terms),
        confidence,
    )
    return MedicalContext(
        terms_found=terms.general_terms,
        abbreviations_used=terms.abbreviations,
        special_terms=terms.latin_terms + terms.anatomical_terms,
        confidence=confidence,
    )
