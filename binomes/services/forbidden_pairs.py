# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: recent pairing history used to discourage repeats.
"""

from datetime import datetime
from typing import Callable, Optional

from binomes.core.config import settings
from binomes.repositories.cycle_repository import CycleRepository
from binomes.services.dates import add_months, utcnow
from binomes.services.pairing import PairKey, pair_key


class ForbiddenPairIndex:
    def __init__(
        self,
        cycle_repo: CycleRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._cycles = cycle_repo
        self._clock = clock

    def build(self, section_id: str, lookback_months: Optional[int] = None) -> set[PairKey]:
        months = (
            settings.FORBIDDEN_PAIRS_LOOKBACK_MONTHS if lookback_months is None else lookback_months
        )
        since = add_months(self._clock(), -months)
        return {pair_key(a, b) for a, b in self._cycles.pair_members_since(section_id, since)}
