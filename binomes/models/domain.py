# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models, pure data structures with no FastAPI dependency.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Member(BaseModel):
    """A section member as seen by the pairing engine (read-only)."""
    model_config = ConfigDict(frozen=True)

    id: str
    section_id: str
    first_name: str = ""
    last_name: str = ""
    birth_date: Optional[date] = None
    age_bracket_override: Optional[str] = None
    gender: Optional[str] = None

    def summary(self) -> dict[str, str]:
        return {"id": self.id, "first_name": self.first_name, "last_name": self.last_name}


class AgeBracket(BaseModel):
    """One entry of the age-bracket (tranche) catalog."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(..., min_length=1)
    age_min: int = Field(..., ge=0)
    age_max: Optional[int] = Field(default=None, ge=0)
    sort_order: int = 0

    def contains(self, age: int) -> bool:
        return age >= self.age_min and (self.age_max is None or age <= self.age_max)

    def summary(self) -> dict:
        return {"id": self.id, "name": self.name}
