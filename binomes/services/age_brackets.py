# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: age-bracket (tranche) resolution for members.
"""

from datetime import date
from typing import Iterable, Optional

from binomes.models.domain import AgeBracket, Member
from binomes.services.dates import age_on

OVERRIDE_CODES = frozenset({"S1", "S2", "S3"})

DEFAULT_BRACKETS: tuple[dict, ...] = (
    {"name": "S1", "age_min": 0, "age_max": 12, "sort_order": 1},
    {"name": "S2", "age_min": 12, "age_max": 18, "sort_order": 2},
    {"name": "S3", "age_min": 18, "age_max": None, "sort_order": 3},
)


def normalize_override(value: object) -> Optional[str]:
    code = str(value if value is not None else "").strip().upper()
    return code if code in OVERRIDE_CODES else None


class AgeBracketResolver:
    """Maps members to a bracket id using a snapshot of the catalog."""

    def __init__(self, catalog: Iterable[AgeBracket]) -> None:
        self._ordered = sorted(catalog, key=lambda b: (b.sort_order, b.name))
        self._by_name = {b.name: b for b in self._ordered}

    @property
    def brackets(self) -> list[AgeBracket]:
        return list(self._ordered)

    def get(self, bracket_id: str) -> Optional[AgeBracket]:
        return next((b for b in self._ordered if b.id == bracket_id), None)

    def resolve(self, member: Member, today: date) -> Optional[str]:
        """
        Return the member's bracket id, or None when the member is ineligible.

        A valid explicit override wins and is looked up by exact name.
        Otherwise the age computed from the birth date selects the first
        bracket (by sort order, then name) whose range contains it.
        """
        override = normalize_override(member.age_bracket_override)
        if override:
            found = self._by_name.get(override)
            return found.id if found else None

        if member.birth_date is None:
            return None

        age = age_on(member.birth_date, today)
        for bracket in self._ordered:
            if bracket.contains(age):
                return bracket.id
        return None
