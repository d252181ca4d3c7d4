# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: read access to the member directory and sections.
NO business rules here.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.engine import Engine

from binomes.models.domain import Member
from binomes.models.tables import members, sections


def _row_to_member(row: Any) -> Member:
    return Member(
        id=str(row.id),
        section_id=str(row.section_id),
        first_name=row.first_name or "",
        last_name=row.last_name or "",
        birth_date=row.birth_date,
        age_bracket_override=row.age_bracket_override,
        gender=row.gender,
    )


class MemberRepository:
    """Members and sections owned by the surrounding system."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def list_by_section(self, section_id: str) -> list[Member]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(members)
                .where(members.c.section_id == section_id)
                .order_by(members.c.id)
            ).fetchall()
        return [_row_to_member(r) for r in rows]

    def get_many(self, member_ids: list[str]) -> dict[str, Member]:
        if not member_ids:
            return {}
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(members).where(members.c.id.in_(member_ids))
            ).fetchall()
        return {str(r.id): _row_to_member(r) for r in rows}

    def list_section_ids(self) -> list[str]:
        with self._engine.connect() as conn:
            rows = conn.execute(select(sections.c.id).order_by(sections.c.id)).fetchall()
        return [str(r[0]) for r in rows]
