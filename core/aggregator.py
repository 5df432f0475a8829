# =============================================================================
# core/aggregator.py - Outcome aggregation
# =============================================================================

import logging
from dataclasses import replace
from typing import List, Tuple

from core.models import OutcomeStatus, ProcessingOutcome, RunCounters


class OutcomeAggregator:
    """Accumulates per-record outcomes and run counters"""

    def __init__(self):
        self._counters = RunCounters()
        self._outcomes: List[ProcessingOutcome] = []
        self._warnings: List[str] = []
        self.logger = logging.getLogger(self.__class__.__name__)

    def record(self, outcome: ProcessingOutcome) -> None:
        """Append one terminal outcome and count it by status"""
        self._outcomes.append(outcome)

        if outcome.status == OutcomeStatus.SUCCESS:
            self._counters.success_count += 1
        elif outcome.status == OutcomeStatus.ERROR:
            self._counters.failure_count += 1
        else:
            self._counters.warning_count += 1

    def note_warning(self, message: str) -> None:
        """Count a warning that has no outcome row of its own"""
        self._warnings.append(message)
        self._counters.warning_count += 1

    def summary(self) -> RunCounters:
        """Point-in-time copy of the counters"""
        return replace(self._counters)

    @property
    def outcomes(self) -> Tuple[ProcessingOutcome, ...]:
        return tuple(self._outcomes)

    @property
    def warnings(self) -> Tuple[str, ...]:
        return tuple(self._warnings)

    def log_summary(self) -> None:
        counters = self.summary()
        self.logger.info(f"Processed {len(self._outcomes)} records: "
                         f"{counters.success_count} succeeded, "
                         f"{counters.failure_count} failed, "
                         f"{counters.warning_count} warnings")
