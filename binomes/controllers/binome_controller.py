# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: binôme cycle endpoints.
Thin HTTP layer, delegates ALL logic to CycleService / ReportService.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from binomes.core.dependencies import get_cycle_service, get_report_service
from binomes.core.errors import CycleConflictError
from binomes.schemas.binome import (
    CurrentResponse,
    GenerateResponse,
    ReportResponse,
    RotateResponse,
    StatusResponse,
)
from binomes.services.cycle_service import CycleService
from binomes.services.report_service import ReportService

router = APIRouter(prefix="/api/v1/binomes", tags=["Binomes"])

SectionId = Annotated[str, Query(min_length=1, description="Acting section id")]


@router.get("/current", response_model=CurrentResponse)
def get_current(
    section_id: SectionId,
    service: CycleService = Depends(get_cycle_service),
):
    """Active cycle with its pairs; rotates first if the cycle expired."""
    return {"cycle": service.get_current(section_id)}


@router.get("/report", response_model=ReportResponse)
def get_report(
    section_id: SectionId,
    service: CycleService = Depends(get_cycle_service),
    reports: ReportService = Depends(get_report_service),
):
    """Pairs with joint attendance over the last period, trios and singles."""
    service.ensure_active_cycle(section_id)
    return reports.build(section_id)


@router.get("/status", response_model=StatusResponse)
def get_status(
    section_id: SectionId,
    service: CycleService = Depends(get_cycle_service),
):
    """Cheap read: id and start of the active cycle, no rotation."""
    return {"cycle": service.get_status(section_id)}


@router.post("/generate", status_code=201, response_model=GenerateResponse)
def generate(
    section_id: SectionId,
    service: CycleService = Depends(get_cycle_service),
):
    """Close the active cycle and draw random pairs per age bracket and gender."""
    try:
        outcome = service.generate(section_id)
    except CycleConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {
        "message": "Binômes générés",
        "cycle_id": outcome["cycle"]["id"],
        "solos": outcome["solos"],
    }


@router.post("/rotate", status_code=201, response_model=RotateResponse)
def rotate(
    section_id: SectionId,
    service: CycleService = Depends(get_cycle_service),
):
    """Close the active cycle and pair most present with least present members."""
    try:
        outcome = service.rotate(section_id)
    except CycleConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {
        "message": "Rotation effectuée",
        "cycle_id": outcome["cycle"]["id"],
        "period": outcome["period"],
        "solos": outcome["solos"],
    }
