from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from spend_core.aggregation import AggregationEngine
from spend_core.config import DEFAULT_CONFIG, DashboardConfig
from spend_core.errors import SheetLoadError
from spend_core.models import Record
from spend_core.narrative import NarrativeService

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "데이터 로드 중 예상치 못한 오류가 발생했습니다."


@dataclass
class DashboardSession:
    """Presentation state for one dashboard viewer.

    Each reload takes a generation number; a result is committed only while its
    generation is still the newest, so a slow stale response never overwrites a
    newer one.
    """

    config: DashboardConfig = DEFAULT_CONFIG
    records: List[Record] = field(default_factory=list)
    error: Optional[Dict[str, Any]] = None
    selected_site: Optional[str] = None
    narrative: str = ""
    loading: bool = False
    analyzing: bool = False
    _generations: Any = field(default_factory=itertools.count, repr=False)
    _latest: int = field(default=0, repr=False)

    def begin_reload(self) -> int:
        self._latest = next(self._generations) + 1
        self.loading = True
        self.error = None
        return self._latest

    def is_current(self, generation: int) -> bool:
        return generation == self._latest

    def commit(self, generation: int, records: List[Record]) -> bool:
        if not self.is_current(generation):
            logger.info("Dropping stale load result (generation %d, latest %d)", generation, self._latest)
            return False
        self.records = list(records)
        self.error = None
        self.loading = False
        if self.selected_site and self.selected_site not in {s.name for s in self.engine().site_summary()}:
            self.selected_site = None
        return True

    def fail(self, generation: int, exc: Exception) -> bool:
        if not self.is_current(generation):
            return False
        if isinstance(exc, SheetLoadError):
            self.error = exc.to_dict()
        else:
            self.error = {"error": str(exc) or UNEXPECTED_ERROR, "type": type(exc).__name__, "detail": repr(exc)}
        self.loading = False
        return True

    def reload(self, loader: Callable[[DashboardConfig], List[Record]]) -> bool:
        generation = self.begin_reload()
        try:
            records = loader(self.config)
        except Exception as exc:
            logger.exception("Dashboard reload failed")
            self.fail(generation, exc)
            return False
        return self.commit(generation, records)

    def select_site(self, name: Optional[str]) -> None:
        self.selected_site = name or None

    def clear_site(self) -> None:
        self.selected_site = None

    def engine(self) -> AggregationEngine:
        return AggregationEngine(self.records, self.config)

    def run_narrative(self, service: Optional[NarrativeService] = None) -> str:
        if not self.records or self.analyzing:
            return self.narrative
        self.analyzing = True
        try:
            self.narrative = (service or NarrativeService(sample_rows=self.config.narrative_sample_rows)).analyze(
                self.records
            )
        finally:
            self.analyzing = False
        return self.narrative
