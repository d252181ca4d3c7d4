# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Shared fixtures: an in-memory SQLite store, a controllable clock, and
builders for sections, members, meetings and cycles.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ROTATION_JOB_ENABLED"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import random
import uuid
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import delete, insert

from binomes.core.database import create_schema, engine
from binomes.models.tables import (
    binome_cycles,
    binome_pairs,
    meeting_attendance,
    meetings,
    members,
    metadata,
    sections,
)
from binomes.repositories.age_bracket_repository import AgeBracketRepository
from binomes.repositories.cycle_repository import CycleRepository
from binomes.repositories.meeting_repository import MeetingRepository
from binomes.repositories.member_repository import MemberRepository
from binomes.services.age_brackets import DEFAULT_BRACKETS
from binomes.services.attendance import AttendanceStatsProvider
from binomes.services.cycle_service import CycleService
from binomes.services.dates import add_months
from binomes.services.forbidden_pairs import ForbiddenPairIndex
from binomes.services.report_service import ReportService

create_schema(engine)

FIXED_NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)

    def advance_months(self, months: int) -> None:
        self.now = add_months(self.now, months)


@pytest.fixture(autouse=True)
def clean_db():
    """Empty every table before each test, then seed the default catalog."""
    with engine.begin() as conn:
        for table in reversed(metadata.sorted_tables):
            conn.execute(delete(table))
    AgeBracketRepository(engine).seed_if_empty(DEFAULT_BRACKETS)
    yield


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repos():
    return {
        "cycles": CycleRepository(engine),
        "members": MemberRepository(engine),
        "brackets": AgeBracketRepository(engine),
        "meetings": MeetingRepository(engine),
    }


@pytest.fixture
def cycle_service(repos, clock):
    return CycleService(
        cycle_repo=repos["cycles"],
        member_repo=repos["members"],
        age_bracket_repo=repos["brackets"],
        attendance=AttendanceStatsProvider(repos["meetings"], clock=clock),
        forbidden_pairs=ForbiddenPairIndex(repos["cycles"], clock=clock),
        clock=clock,
        rng=random.Random(1234),
    )


@pytest.fixture
def report_service(repos, clock):
    return ReportService(
        cycle_repo=repos["cycles"],
        member_repo=repos["members"],
        age_bracket_repo=repos["brackets"],
        attendance=AttendanceStatsProvider(repos["meetings"], clock=clock),
        clock=clock,
    )


# ── Builders ──

def bracket_id(name: str) -> str:
    for b in AgeBracketRepository(engine).list_all():
        if b.name == name:
            return b.id
    raise LookupError(name)


def add_section(section_id: str | None = None, name: str = "Section") -> str:
    section_id = section_id or str(uuid.uuid4())
    with engine.begin() as conn:
        conn.execute(insert(sections), {"id": section_id, "name": name})
    return section_id


def add_member(
    section_id: str,
    member_id: str | None = None,
    gender: str | None = "M",
    birth_date: date | None = None,
    override: str | None = "S3",
    first_name: str = "",
    last_name: str = "",
) -> str:
    member_id = member_id or str(uuid.uuid4())
    with engine.begin() as conn:
        conn.execute(insert(members), {
            "id": member_id,
            "section_id": section_id,
            "first_name": first_name or member_id,
            "last_name": last_name,
            "birth_date": birth_date,
            "age_bracket_override": override,
            "gender": gender,
        })
    return member_id


def add_meeting(section_id: str, held_at: datetime, present: list[str]) -> str:
    meeting_id = str(uuid.uuid4())
    with engine.begin() as conn:
        conn.execute(insert(meetings), {"id": meeting_id, "section_id": section_id, "held_at": held_at})
        if present:
            conn.execute(
                insert(meeting_attendance),
                [{"meeting_id": meeting_id, "member_id": mid} for mid in present],
            )
    return meeting_id


def add_cycle(
    section_id: str,
    started_at: datetime,
    pairs: list[tuple[str, str]] = (),
    is_active: bool = True,
    bracket: str = "S3",
    gender: str = "M",
) -> str:
    """Insert a cycle (and its pairs) directly, bypassing the service."""
    cycle_id = str(uuid.uuid4())
    pair_bracket_id = bracket_id(bracket)
    with engine.begin() as conn:
        conn.execute(insert(binome_cycles), {
            "id": cycle_id,
            "section_id": section_id,
            "started_at": started_at,
            "ended_at": None if is_active else started_at,
            "is_active": is_active,
        })
        for position, (a, b) in enumerate(pairs):
            conn.execute(insert(binome_pairs), {
                "id": str(uuid.uuid4()),
                "cycle_id": cycle_id,
                "age_bracket_id": pair_bracket_id,
                "gender": gender,
                "member_a_id": a,
                "member_b_id": b,
                "position": position,
                "created_at": started_at,
            })
    return cycle_id
