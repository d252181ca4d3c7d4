# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: age-bracket catalog.
"""

import uuid
from typing import Iterable

from sqlalchemy import func, insert, select
from sqlalchemy.engine import Engine

from binomes.core.logging import get_logger
from binomes.models.domain import AgeBracket
from binomes.models.tables import age_brackets

logger = get_logger(__name__)


class AgeBracketRepository:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def list_all(self) -> list[AgeBracket]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(age_brackets).order_by(age_brackets.c.sort_order, age_brackets.c.name)
            ).fetchall()
        return [
            AgeBracket(
                id=str(r.id),
                name=r.name,
                age_min=r.age_min,
                age_max=r.age_max,
                sort_order=r.sort_order,
            )
            for r in rows
        ]

    def seed_if_empty(self, defaults: Iterable[dict]) -> int:
        """Insert the default catalog when no bracket exists yet."""
        with self._engine.begin() as conn:
            existing = conn.execute(select(func.count()).select_from(age_brackets)).scalar()
            if existing:
                return 0
            rows = [{"id": str(uuid.uuid4()), **d} for d in defaults]
            conn.execute(insert(age_brackets), rows)
        logger.info("Seeded %d default age brackets", len(rows))
        return len(rows)
