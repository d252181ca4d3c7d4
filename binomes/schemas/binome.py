# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas, the API contract definitions.
Pydantic models used ONLY at the controller (HTTP) boundary.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


# ── Cycle Schemas ──

class CycleStatus(BaseModel):
    id: str
    started_at: datetime


class StatusResponse(BaseModel):
    cycle: Optional[CycleStatus] = None


class CycleSummary(BaseModel):
    id: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    is_active: bool
    next_rotation_at: datetime


class CurrentCycle(CycleSummary):
    section_id: str
    pairs: list[dict]


class CurrentResponse(BaseModel):
    cycle: CurrentCycle


class Period(BaseModel):
    last_days: int
    total_meetings: int


class SoloOut(BaseModel):
    age_bracket_id: str
    gender: str
    member_id: str


class GenerateResponse(BaseModel):
    message: str
    cycle_id: str
    solos: list[SoloOut]


class RotateResponse(GenerateResponse):
    period: Period


# ── Report Schemas ──

class ReportResponse(BaseModel):
    cycle: Optional[CycleSummary] = None
    period: Period
    pairs: list[dict]
    singles: list[dict]


# ── Catalog Schemas ──

class AgeBracketOut(BaseModel):
    id: str
    name: str
    age_min: int
    age_max: Optional[int] = None
    sort_order: int
