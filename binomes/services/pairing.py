# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Pairing logic, pure computation with no side effects.

Buckets map ``(age_bracket_id, gender)`` to member ids. Every policy walks
the buckets in key order and never pairs across buckets.
"""

import random
from dataclasses import dataclass, field
from typing import Mapping, Optional

BucketKey = tuple[str, str]
PairKey = tuple[str, str]

POLICY_RANDOM = "random"
POLICY_PRESENCE = "presence"
POLICY_AVOID_REPEATS = "presence_avoid_repeats"


def pair_key(a: str, b: str) -> PairKey:
    """Order-insensitive key for a pair of member ids."""
    x, y = str(a), str(b)
    return (x, y) if x < y else (y, x)


@dataclass(frozen=True)
class PlannedPair:
    age_bracket_id: str
    gender: str
    member_a_id: str
    member_b_id: str

    @property
    def key(self) -> PairKey:
        return pair_key(self.member_a_id, self.member_b_id)


@dataclass(frozen=True)
class Solo:
    age_bracket_id: str
    gender: str
    member_id: str

    def to_dict(self) -> dict[str, str]:
        return {
            "age_bracket_id": self.age_bracket_id,
            "gender": self.gender,
            "member_id": self.member_id,
        }


@dataclass
class PairingResult:
    policy: str
    pairs: list[PlannedPair] = field(default_factory=list)
    solos: list[Solo] = field(default_factory=list)

    def member_ids(self) -> list[str]:
        ids: list[str] = []
        for p in self.pairs:
            ids.extend((p.member_a_id, p.member_b_id))
        ids.extend(s.member_id for s in self.solos)
        return ids


def sort_by_presence(ids: list[str], presence: Mapping[str, int]) -> list[str]:
    """Most present first; equal counts fall back to member id."""
    return sorted(ids, key=lambda mid: (-presence.get(mid, 0), mid))


def generate_random(
    buckets: Mapping[BucketKey, list[str]],
    rng: Optional[random.Random] = None,
) -> PairingResult:
    """Policy A: shuffle each bucket and pair neighbours."""
    rng = rng or random.Random()
    result = PairingResult(policy=POLICY_RANDOM)
    for (bracket_id, gender), ids in sorted(buckets.items()):
        shuffled = list(ids)
        rng.shuffle(shuffled)
        for i in range(0, len(shuffled) - 1, 2):
            result.pairs.append(PlannedPair(bracket_id, gender, shuffled[i], shuffled[i + 1]))
        if len(shuffled) % 2 == 1:
            result.solos.append(Solo(bracket_id, gender, shuffled[-1]))
    return result


def rotate_by_presence(
    buckets: Mapping[BucketKey, list[str]],
    presence: Mapping[str, int],
) -> PairingResult:
    """Policy B: pair the most present with the least present, moving inward."""
    result = PairingResult(policy=POLICY_PRESENCE)
    for (bracket_id, gender), ids in sorted(buckets.items()):
        ranked = sort_by_presence(ids, presence)
        left, right = 0, len(ranked) - 1
        while left < right:
            result.pairs.append(PlannedPair(bracket_id, gender, ranked[left], ranked[right]))
            left += 1
            right -= 1
        if left == right:
            result.solos.append(Solo(bracket_id, gender, ranked[left]))
    return result


def pair_avoiding(ranked: list[str], forbidden: set[PairKey]) -> tuple[list[PairKey], Optional[str]]:
    """
    Greedy pairing of an already ranked list.

    The head is matched with the first member, scanning from the tail, that
    it was not recently paired with. When every candidate is forbidden the
    tail is taken anyway. ``forbidden`` grows with each emitted pair.
    """
    remaining = list(ranked)
    pairs: list[PairKey] = []
    while len(remaining) >= 2:
        head = remaining[0]
        pick = len(remaining) - 1
        for i in range(len(remaining) - 1, 0, -1):
            if pair_key(head, remaining[i]) not in forbidden:
                pick = i
                break
        partner = remaining.pop(pick)
        remaining.pop(0)
        pairs.append((head, partner))
        forbidden.add(pair_key(head, partner))
    return pairs, (remaining[0] if remaining else None)


def rotate_avoiding_repeats(
    buckets: Mapping[BucketKey, list[str]],
    presence: Mapping[str, int],
    forbidden: set[PairKey],
) -> PairingResult:
    """Policy C: presence-balanced pairing that steers clear of recent pairs."""
    seen = set(forbidden)
    result = PairingResult(policy=POLICY_AVOID_REPEATS)
    for (bracket_id, gender), ids in sorted(buckets.items()):
        pairs, solo = pair_avoiding(sort_by_presence(ids, presence), seen)
        for a, b in pairs:
            result.pairs.append(PlannedPair(bracket_id, gender, a, b))
        if solo is not None:
            result.solos.append(Solo(bracket_id, gender, solo))
    return result
