# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: binôme cycles and pairs.
Encapsulates all read/write operations on binome_cycles / binome_pairs.
NO business rules here, pure data access.
"""

import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterable, Iterator, Optional

from sqlalchemy import func, insert, select, text, true, update
from sqlalchemy.engine import Connection, Engine

from binomes.models.tables import binome_cycles, binome_pairs
from binomes.services.dates import as_utc

PAIR_ORDER = (
    binome_pairs.c.age_bracket_id,
    binome_pairs.c.gender,
    binome_pairs.c.created_at,
    binome_pairs.c.position,
)


def _cycle_to_dict(row: Any) -> dict[str, Any]:
    return {
        "id": str(row.id),
        "section_id": str(row.section_id),
        "started_at": as_utc(row.started_at),
        "ended_at": as_utc(row.ended_at),
        "is_active": bool(row.is_active),
    }


def _pair_to_dict(row: Any) -> dict[str, Any]:
    return {
        "id": str(row.id),
        "cycle_id": str(row.cycle_id),
        "age_bracket_id": str(row.age_bracket_id),
        "gender": row.gender,
        "member_a_id": str(row.member_a_id),
        "member_b_id": str(row.member_b_id),
        "position": row.position,
        "created_at": as_utc(row.created_at),
    }


class CycleRepository:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @contextmanager
    def begin_transaction(self) -> Iterator[Connection]:
        """Commit on clean exit, roll back if the block raises."""
        with self._engine.begin() as conn:
            yield conn

    # ── Read ──

    def find_active(
        self, conn: Connection, section_id: str, for_update: bool = False
    ) -> Optional[dict[str, Any]]:
        query = (
            select(binome_cycles)
            .where(binome_cycles.c.section_id == section_id, binome_cycles.c.is_active == true())
            .order_by(binome_cycles.c.started_at.desc())
            .limit(1)
        )
        if for_update:
            query = query.with_for_update()
        row = conn.execute(query).fetchone()
        return _cycle_to_dict(row) if row else None

    def get_active_cycle(self, section_id: str) -> Optional[dict[str, Any]]:
        with self._engine.connect() as conn:
            return self.find_active(conn, section_id)

    def count_active(self, section_id: str) -> int:
        with self._engine.connect() as conn:
            return conn.execute(
                select(func.count())
                .select_from(binome_cycles)
                .where(binome_cycles.c.section_id == section_id, binome_cycles.c.is_active == true())
            ).scalar() or 0

    def list_cycles(self, section_id: str) -> list[dict[str, Any]]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(binome_cycles)
                .where(binome_cycles.c.section_id == section_id)
                .order_by(binome_cycles.c.started_at)
            ).fetchall()
        return [_cycle_to_dict(r) for r in rows]

    def list_pairs(self, cycle_id: str) -> list[dict[str, Any]]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(binome_pairs)
                .where(binome_pairs.c.cycle_id == cycle_id)
                .order_by(*PAIR_ORDER)
            ).fetchall()
        return [_pair_to_dict(r) for r in rows]

    def pair_members_since(self, section_id: str, since: datetime) -> list[tuple[str, str]]:
        """(member_a_id, member_b_id) of every pair whose cycle started since ``since``."""
        query = (
            select(binome_pairs.c.member_a_id, binome_pairs.c.member_b_id)
            .select_from(
                binome_pairs.join(binome_cycles, binome_cycles.c.id == binome_pairs.c.cycle_id)
            )
            .where(binome_cycles.c.section_id == section_id, binome_cycles.c.started_at >= since)
        )
        with self._engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [(str(a), str(b)) for a, b in rows]

    # ── Write (caller owns the transaction) ──

    def close_cycle(self, conn: Connection, cycle_id: str, ended_at: datetime) -> bool:
        """Deactivate iff still active; False means another writer got there first."""
        result = conn.execute(
            update(binome_cycles)
            .where(binome_cycles.c.id == cycle_id, binome_cycles.c.is_active == true())
            .values(is_active=False, ended_at=ended_at)
        )
        return result.rowcount == 1

    def create_cycle(self, conn: Connection, section_id: str, started_at: datetime) -> dict[str, Any]:
        cycle = {
            "id": str(uuid.uuid4()),
            "section_id": section_id,
            "started_at": started_at,
            "ended_at": None,
            "is_active": True,
        }
        conn.execute(insert(binome_cycles), cycle)
        return cycle

    def add_pairs(
        self, conn: Connection, cycle_id: str, pairs: Iterable[Any], created_at: datetime
    ) -> int:
        rows = [
            {
                "id": str(uuid.uuid4()),
                "cycle_id": cycle_id,
                "age_bracket_id": p.age_bracket_id,
                "gender": p.gender,
                "member_a_id": p.member_a_id,
                "member_b_id": p.member_b_id,
                "position": position,
                "created_at": created_at,
            }
            for position, p in enumerate(pairs)
        ]
        if rows:
            conn.execute(insert(binome_pairs), rows)
        return len(rows)

    # ── Ops ──

    def verify_connection(self) -> None:
        with self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))
