# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: meeting attendance (read-only).
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.engine import Engine

from binomes.models.tables import meeting_attendance, meetings


class MeetingRepository:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def presence_sets_since(self, section_id: str, since: datetime) -> list[set[str]]:
        """One set of present member ids per meeting held since ``since``, oldest first."""
        query = (
            select(meetings.c.id, meeting_attendance.c.member_id)
            .select_from(
                meetings.outerjoin(
                    meeting_attendance, meeting_attendance.c.meeting_id == meetings.c.id
                )
            )
            .where(meetings.c.section_id == section_id, meetings.c.held_at >= since)
            .order_by(meetings.c.held_at, meetings.c.id)
        )
        with self._engine.connect() as conn:
            rows = conn.execute(query).fetchall()

        by_meeting: dict[str, set[str]] = {}
        for meeting_id, member_id in rows:
            present = by_meeting.setdefault(str(meeting_id), set())
            if member_id is not None:
                present.add(str(member_id))
        return list(by_meeting.values())
