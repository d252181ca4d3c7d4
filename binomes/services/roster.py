# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: eligibility filter and bucket partition for a section roster.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from binomes.models.domain import Member
from binomes.services.age_brackets import AgeBracketResolver
from binomes.services.gender import normalize_gender
from binomes.services.pairing import BucketKey


@dataclass(frozen=True)
class EligibleMember:
    member: Member
    age_bracket_id: str
    gender: str

    @property
    def id(self) -> str:
        return self.member.id

    @property
    def bucket(self) -> BucketKey:
        return (self.age_bracket_id, self.gender)


def eligible_members(
    members: Iterable[Member],
    resolver: AgeBracketResolver,
    today: date,
    gender_passthrough: bool = True,
) -> list[EligibleMember]:
    """Keep members that resolve to both an age bracket and a gender."""
    eligible: list[EligibleMember] = []
    for member in members:
        bracket_id = resolver.resolve(member, today)
        gender = normalize_gender(member.gender, passthrough=gender_passthrough)
        if bracket_id and gender:
            eligible.append(EligibleMember(member, bracket_id, gender))
    return eligible


def partition(eligible: Iterable[EligibleMember]) -> dict[BucketKey, list[str]]:
    buckets: dict[BucketKey, list[str]] = {}
    for em in eligible:
        buckets.setdefault(em.bucket, []).append(em.id)
    return buckets
