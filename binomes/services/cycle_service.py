# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: cycle lifecycle and rotation.

A section has at most one active cycle. Generating, rotating or expiring a
cycle closes the current one and opens its successor in a single
transaction; if the active cycle changed underneath us the transaction is
rolled back and CycleConflictError is raised.
"""

import random
import time
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.exc import IntegrityError

from binomes.core.config import settings
from binomes.core.errors import CycleConflictError
from binomes.core.logging import get_logger
from binomes.metrics.prometheus import (
    CYCLES_CREATED,
    PAIRS_CREATED,
    ROTATION_CONFLICTS,
    ROTATIONS_TOTAL,
    SWEEP_DURATION,
    SWEEP_FAILURES,
    SWEEP_RUNS,
)
from binomes.repositories.age_bracket_repository import AgeBracketRepository
from binomes.repositories.cycle_repository import CycleRepository
from binomes.repositories.member_repository import MemberRepository
from binomes.services.age_brackets import AgeBracketResolver
from binomes.services.attendance import AttendanceStatsProvider
from binomes.services.dates import add_months, utcnow
from binomes.services.forbidden_pairs import ForbiddenPairIndex
from binomes.services.pairing import (
    PairingResult,
    generate_random,
    rotate_avoiding_repeats,
    rotate_by_presence,
)
from binomes.services.roster import eligible_members, partition

logger = get_logger(__name__)

ROTATION_INTERVAL_MONTHS = 3

_ANY = object()


def next_rotation_at(cycle: dict[str, Any]) -> datetime:
    return add_months(cycle["started_at"], ROTATION_INTERVAL_MONTHS)


class CycleService:
    """Owns the NO_ACTIVE_CYCLE -> ACTIVE -> (ROTATING) -> ACTIVE lifecycle."""

    def __init__(
        self,
        cycle_repo: CycleRepository,
        member_repo: MemberRepository,
        age_bracket_repo: AgeBracketRepository,
        attendance: AttendanceStatsProvider,
        forbidden_pairs: ForbiddenPairIndex,
        clock: Callable[[], datetime] = utcnow,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._cycles = cycle_repo
        self._members = member_repo
        self._brackets = age_bracket_repo
        self._attendance = attendance
        self._forbidden = forbidden_pairs
        self._clock = clock
        self._rng = rng or random.Random()

    # ── Commands ──

    def generate(self, section_id: str) -> dict[str, Any]:
        """Open a new cycle with random pairs, closing any active one."""
        buckets = self._buckets(section_id)
        result = generate_random(buckets, self._rng)
        cycle = self._commit(section_id, result)
        ROTATIONS_TOTAL.labels(trigger="manual_generate").inc()
        return {"cycle": cycle, "solos": [s.to_dict() for s in result.solos]}

    def rotate(self, section_id: str) -> dict[str, Any]:
        """Open a new cycle pairing most present with least present members."""
        eligible = self._eligible(section_id)
        stats = self._attendance.presence_stats(section_id, [e.id for e in eligible])
        result = rotate_by_presence(partition(eligible), stats.present_by_member)
        cycle = self._commit(section_id, result)
        ROTATIONS_TOTAL.labels(trigger="manual_rotate").inc()
        return {
            "cycle": cycle,
            "period": {
                "last_days": settings.ATTENDANCE_WINDOW_DAYS,
                "total_meetings": stats.total_meetings,
            },
            "solos": [s.to_dict() for s in result.solos],
        }

    def rotate_for_section(
        self,
        section_id: str,
        lookback_months: Optional[int] = None,
        expected_active_id: Any = _ANY,
    ) -> dict[str, Any]:
        """
        Presence-balanced rotation avoiding pairs from the look-back window.

        ``expected_active_id`` (a cycle id, or None for "no active cycle")
        makes the commit conditional on the section still being in the state
        the caller observed.
        """
        eligible = self._eligible(section_id)
        stats = self._attendance.presence_stats(section_id, [e.id for e in eligible])
        forbidden = self._forbidden.build(section_id, lookback_months)
        result = rotate_avoiding_repeats(partition(eligible), stats.present_by_member, forbidden)
        return self._commit(section_id, result, expected_active_id)

    # ── Expiry checks ──

    def is_expired(self, cycle: dict[str, Any], now: Optional[datetime] = None) -> bool:
        return (now or self._clock()) >= next_rotation_at(cycle)

    def ensure_active_cycle(self, section_id: str) -> dict[str, Any]:
        """
        Lazy on-read check: create the first cycle or replace an expired one.
        Losing a race to another writer is fine; whatever is active wins.
        """
        active = self._cycles.get_active_cycle(section_id)
        if active is not None and not self.is_expired(active):
            return active
        try:
            cycle = self.rotate_for_section(
                section_id, expected_active_id=active["id"] if active else None
            )
            ROTATIONS_TOTAL.labels(trigger="lazy").inc()
            return cycle
        except CycleConflictError:
            logger.info("Lazy rotation lost a race, re-reading active cycle",
                        extra={"section_id": section_id})
            current = self._cycles.get_active_cycle(section_id)
            if current is None:
                raise
            return current

    def check_section(self, section_id: str) -> str:
        """Scheduled check for one section; sections without a cycle are skipped."""
        active = self._cycles.get_active_cycle(section_id)
        if active is None:
            return "no_cycle"
        if not self.is_expired(active):
            return "fresh"
        try:
            self.rotate_for_section(section_id, expected_active_id=active["id"])
        except CycleConflictError:
            return "conflict"
        ROTATIONS_TOTAL.labels(trigger="scheduled").inc()
        return "rotated"

    def run_once(self) -> dict[str, int]:
        """Sweep every section. One failing section never stops the others."""
        SWEEP_RUNS.inc()
        outcomes: dict[str, int] = {}
        start = time.time()
        for section_id in self._members.list_section_ids():
            try:
                outcome = self.check_section(section_id)
            except Exception:
                SWEEP_FAILURES.inc()
                logger.exception("Rotation check failed", extra={"section_id": section_id})
                outcome = "failed"
            outcomes[outcome] = outcomes.get(outcome, 0) + 1
        SWEEP_DURATION.observe(time.time() - start)
        logger.info("Rotation sweep finished: %s", outcomes)
        return outcomes

    # ── Queries ──

    def get_status(self, section_id: str) -> Optional[dict[str, Any]]:
        active = self._cycles.get_active_cycle(section_id)
        if active is None:
            return None
        return {"id": active["id"], "started_at": active["started_at"]}

    def get_current(self, section_id: str) -> dict[str, Any]:
        """Active cycle (after the lazy check) with its pairs and member details."""
        cycle = self.ensure_active_cycle(section_id)
        pairs = self._cycles.list_pairs(cycle["id"])
        member_ids = [mid for p in pairs for mid in (p["member_a_id"], p["member_b_id"])]
        members = self._members.get_many(member_ids)
        resolver = AgeBracketResolver(self._brackets.list_all())

        def _describe(member_id: str) -> dict[str, str]:
            member = members.get(member_id)
            return member.summary() if member else {"id": member_id}

        enriched = []
        for p in pairs:
            bracket = resolver.get(p["age_bracket_id"])
            enriched.append({
                "id": p["id"],
                "age_bracket_id": p["age_bracket_id"],
                "age_bracket": bracket.summary() if bracket else None,
                "gender": p["gender"],
                "member_a": _describe(p["member_a_id"]),
                "member_b": _describe(p["member_b_id"]),
                "created_at": p["created_at"],
            })
        return {
            **cycle,
            "next_rotation_at": next_rotation_at(cycle),
            "pairs": enriched,
        }

    # ── Internal ──

    def _eligible(self, section_id: str):
        resolver = AgeBracketResolver(self._brackets.list_all())
        return eligible_members(
            self._members.list_by_section(section_id),
            resolver,
            self._clock().date(),
            gender_passthrough=settings.UNKNOWN_GENDER_ELIGIBLE,
        )

    def _buckets(self, section_id: str):
        return partition(self._eligible(section_id))

    def _commit(
        self, section_id: str, result: PairingResult, expected_active_id: Any = _ANY
    ) -> dict[str, Any]:
        """Close the active cycle and persist the new one with its pairs, atomically."""
        now = self._clock()
        try:
            with self._cycles.begin_transaction() as conn:
                current = self._cycles.find_active(conn, section_id, for_update=True)
                current_id = current["id"] if current else None
                if expected_active_id is not _ANY and current_id != expected_active_id:
                    raise CycleConflictError(section_id)
                if current is not None and not self._cycles.close_cycle(conn, current_id, now):
                    raise CycleConflictError(section_id)
                cycle = self._cycles.create_cycle(conn, section_id, now)
                created = self._cycles.add_pairs(conn, cycle["id"], result.pairs, now)
        except IntegrityError as exc:
            ROTATION_CONFLICTS.inc()
            raise CycleConflictError(section_id, "another active cycle was created") from exc
        except CycleConflictError:
            ROTATION_CONFLICTS.inc()
            raise

        CYCLES_CREATED.labels(policy=result.policy).inc()
        PAIRS_CREATED.labels(policy=result.policy).inc(created)
        logger.info(
            "Cycle opened: section=%s policy=%s pairs=%d solos=%d previous=%s",
            section_id, result.policy, created, len(result.solos), current_id,
            extra={"section_id": section_id, "cycle_id": cycle["id"]},
        )
        return cycle
