# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: age-bracket catalog.
"""

from fastapi import APIRouter, Depends

from binomes.core.config import settings
from binomes.core.dependencies import get_age_bracket_repo
from binomes.repositories.age_bracket_repository import AgeBracketRepository
from binomes.schemas.binome import AgeBracketOut
from binomes.services.age_brackets import DEFAULT_BRACKETS

router = APIRouter(prefix="/api/v1", tags=["Age brackets"])


@router.get("/age-brackets", response_model=list[AgeBracketOut])
def list_age_brackets(
    repo: AgeBracketRepository = Depends(get_age_bracket_repo),
):
    """Catalog ordered by sort order then name; defaults are seeded when empty."""
    if settings.SEED_DEFAULT_AGE_BRACKETS:
        repo.seed_if_empty(DEFAULT_BRACKETS)
    return [b.model_dump() for b in repo.list_all()]
