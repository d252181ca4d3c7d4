# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: attendance statistics over recent meetings.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from binomes.core.config import settings
from binomes.repositories.meeting_repository import MeetingRepository
from binomes.services.dates import utcnow


@dataclass
class PresenceStats:
    total_meetings: int
    present_by_member: dict[str, int]


def count_all_present(presence_sets: Iterable[set[str]], member_ids: list[str]) -> int:
    """Meetings at which every one of ``member_ids`` was present."""
    present_all = 0
    for present in presence_sets:
        if all(mid in present for mid in member_ids):
            present_all += 1
    return present_all


def attendance_percent(present_all: int, total_meetings: int) -> Optional[float]:
    """Share of meetings with one decimal, rounded half up; None without meetings."""
    if total_meetings <= 0:
        return None
    return math.floor(present_all / total_meetings * 1000 + 0.5) / 10


def joint_stats(presence_sets: list[set[str]], member_ids: list[str]) -> dict:
    total = len(presence_sets)
    present_all = count_all_present(presence_sets, member_ids)
    return {
        "total_meetings": total,
        "present_all": present_all,
        "absent_either": total - present_all,
        "percent": attendance_percent(present_all, total),
    }


class AttendanceStatsProvider:
    def __init__(
        self,
        meeting_repo: MeetingRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._meetings = meeting_repo
        self._clock = clock

    def presence_sets(self, section_id: str, window_days: Optional[int] = None) -> list[set[str]]:
        days = settings.ATTENDANCE_WINDOW_DAYS if window_days is None else window_days
        since = self._clock() - timedelta(days=days)
        return self._meetings.presence_sets_since(section_id, since)

    def presence_stats(
        self, section_id: str, member_ids: list[str], window_days: Optional[int] = None
    ) -> PresenceStats:
        sets = self.presence_sets(section_id, window_days)
        counts = {mid: 0 for mid in member_ids}
        for present in sets:
            for mid in member_ids:
                if mid in present:
                    counts[mid] += 1
        return PresenceStats(total_meetings=len(sets), present_by_member=counts)
