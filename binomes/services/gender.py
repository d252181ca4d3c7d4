# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Gender normalization for pairing buckets.
"""

import unicodedata
from typing import Optional

MALE = "M"
FEMALE = "F"

_MALE_SYNONYMS = frozenset({"m", "male", "homme", "masculin"})
_FEMALE_SYNONYMS = frozenset({"f", "female", "femme", "feminin", "féminin"})


def normalize_gender(raw: Optional[str], passthrough: bool = True) -> Optional[str]:
    """
    Canonicalize free-text gender to ``M`` / ``F``.

    Unrecognized non-empty values come back upper-cased and form their own
    bucket; with ``passthrough=False`` they are treated as missing instead.
    """
    value = unicodedata.normalize("NFC", (raw or "").strip().lower())
    if not value:
        return None
    if value in _MALE_SYNONYMS:
        return MALE
    if value in _FEMALE_SYNONYMS:
        return FEMALE
    return value.upper() if passthrough else None
