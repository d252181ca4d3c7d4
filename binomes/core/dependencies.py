# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection, wires repositories and services.
"""

from binomes.core.config import settings
from binomes.core.database import engine
from binomes.repositories.age_bracket_repository import AgeBracketRepository
from binomes.repositories.cycle_repository import CycleRepository
from binomes.repositories.meeting_repository import MeetingRepository
from binomes.repositories.member_repository import MemberRepository
from binomes.services.attendance import AttendanceStatsProvider
from binomes.services.cycle_service import CycleService
from binomes.services.forbidden_pairs import ForbiddenPairIndex
from binomes.services.report_service import ReportService
from binomes.services.rotation_job import RotationJob

# ── Singleton repository instances ──
_cycle_repo = CycleRepository(engine)
_member_repo = MemberRepository(engine)
_age_bracket_repo = AgeBracketRepository(engine)
_meeting_repo = MeetingRepository(engine)

# ── Service instances (with injected dependencies) ──
_attendance = AttendanceStatsProvider(_meeting_repo)
_forbidden_pairs = ForbiddenPairIndex(_cycle_repo)
_cycle_service = CycleService(
    cycle_repo=_cycle_repo,
    member_repo=_member_repo,
    age_bracket_repo=_age_bracket_repo,
    attendance=_attendance,
    forbidden_pairs=_forbidden_pairs,
)
_report_service = ReportService(
    cycle_repo=_cycle_repo,
    member_repo=_member_repo,
    age_bracket_repo=_age_bracket_repo,
    attendance=_attendance,
)
_rotation_job = RotationJob(_cycle_service, settings.ROTATION_JOB_INTERVAL_SECONDS)


# ── FastAPI dependency functions ──
def get_cycle_service() -> CycleService:
    return _cycle_service


def get_report_service() -> ReportService:
    return _report_service


def get_rotation_job() -> RotationJob:
    return _rotation_job


def get_cycle_repo() -> CycleRepository:
    return _cycle_repo


def get_age_bracket_repo() -> AgeBracketRepository:
    return _age_bracket_repo
