# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: display-ready report of the active cycle with attendance stats.
Read-only; trio promotion is computed here and never persisted.
"""

from datetime import datetime
from typing import Any, Callable

from binomes.core.config import settings
from binomes.repositories.age_bracket_repository import AgeBracketRepository
from binomes.repositories.cycle_repository import CycleRepository
from binomes.repositories.member_repository import MemberRepository
from binomes.services.age_brackets import AgeBracketResolver
from binomes.services.attendance import AttendanceStatsProvider, joint_stats
from binomes.services.cycle_service import next_rotation_at
from binomes.services.dates import utcnow
from binomes.services.roster import eligible_members


class ReportService:
    def __init__(
        self,
        cycle_repo: CycleRepository,
        member_repo: MemberRepository,
        age_bracket_repo: AgeBracketRepository,
        attendance: AttendanceStatsProvider,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._cycles = cycle_repo
        self._members = member_repo
        self._brackets = age_bracket_repo
        self._attendance = attendance
        self._clock = clock

    def build(self, section_id: str) -> dict[str, Any]:
        presence_sets = self._attendance.presence_sets(section_id)
        period = {
            "last_days": settings.ATTENDANCE_WINDOW_DAYS,
            "total_meetings": len(presence_sets),
        }

        cycle = self._cycles.get_active_cycle(section_id)
        if cycle is None:
            return {"cycle": None, "period": period, "pairs": [], "singles": []}

        resolver = AgeBracketResolver(self._brackets.list_all())
        roster = self._members.list_by_section(section_id)
        members = {m.id: m for m in roster}

        def _describe(member_id: str) -> dict[str, str]:
            member = members.get(member_id)
            return member.summary() if member else {"id": member_id}

        def _bracket(bracket_id: str):
            bracket = resolver.get(bracket_id)
            return bracket.summary() if bracket else None

        pairs: list[dict[str, Any]] = []
        paired_ids: set[str] = set()
        last_pair_by_bucket: dict[tuple[str, str], dict[str, Any]] = {}
        for p in self._cycles.list_pairs(cycle["id"]):
            entry = {
                "id": p["id"],
                "age_bracket_id": p["age_bracket_id"],
                "age_bracket": _bracket(p["age_bracket_id"]),
                "gender": p["gender"],
                "member_a": _describe(p["member_a_id"]),
                "member_b": _describe(p["member_b_id"]),
                "member_c": None,
                "created_at": p["created_at"],
                "stats": joint_stats(presence_sets, [p["member_a_id"], p["member_b_id"]]),
            }
            pairs.append(entry)
            paired_ids.update((p["member_a_id"], p["member_b_id"]))
            last_pair_by_bucket[(p["age_bracket_id"], p["gender"])] = entry

        leftovers: dict[tuple[str, str], list] = {}
        eligible = eligible_members(
            roster,
            resolver,
            self._clock().date(),
            gender_passthrough=settings.UNKNOWN_GENDER_ELIGIBLE,
        )
        for em in eligible:
            if em.id not in paired_ids:
                leftovers.setdefault(em.bucket, []).append(em)

        singles: list[dict[str, Any]] = []
        for bucket, group in leftovers.items():
            target = last_pair_by_bucket.get(bucket)
            if target is not None:
                promoted, group = group[0], group[1:]
                target["member_c"] = promoted.member.summary()
                trio_ids = [target["member_a"]["id"], target["member_b"]["id"], promoted.id]
                target["stats"] = joint_stats(presence_sets, trio_ids)
            for em in group:
                singles.append({
                    "age_bracket_id": em.age_bracket_id,
                    "age_bracket": _bracket(em.age_bracket_id),
                    "gender": em.gender,
                    "member": em.member.summary(),
                })

        return {
            "cycle": {
                "id": cycle["id"],
                "started_at": cycle["started_at"],
                "ended_at": cycle["ended_at"],
                "is_active": cycle["is_active"],
                "next_rotation_at": next_rotation_at(cycle),
            },
            "period": period,
            "pairs": pairs,
            "singles": singles,
        }
