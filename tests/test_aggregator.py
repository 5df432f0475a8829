import pytest

from core.aggregator import OutcomeAggregator
from core.models import Action, OutcomeStatus, ProcessingOutcome


def outcome(status: OutcomeStatus, username: str = "jdoe") -> ProcessingOutcome:
    detail = "failed" if status == OutcomeStatus.ERROR else None
    return ProcessingOutcome(username=username, action=Action.CREATE, status=status, error_detail=detail)


def test_counts_by_status_without_double_counting() -> None:
    aggregator = OutcomeAggregator()
    for status in (OutcomeStatus.SUCCESS, OutcomeStatus.SUCCESS, OutcomeStatus.WARNING, OutcomeStatus.ERROR):
        aggregator.record(outcome(status))

    counters = aggregator.summary()
    assert counters.success_count == 2
    assert counters.failure_count == 1
    assert counters.warning_count == 1
    assert len(aggregator.outcomes) == 4


def test_summary_is_point_in_time_copy() -> None:
    aggregator = OutcomeAggregator()
    aggregator.record(outcome(OutcomeStatus.SUCCESS))
    partial = aggregator.summary()

    aggregator.record(outcome(OutcomeStatus.ERROR))

    assert partial.success_count == 1 and partial.failure_count == 0
    assert aggregator.summary().failure_count == 1


def test_sub_step_warnings_have_no_outcome_row() -> None:
    aggregator = OutcomeAggregator()
    aggregator.record(outcome(OutcomeStatus.SUCCESS))
    aggregator.note_warning("jdoe: group VPN Users: group not found")

    assert aggregator.summary().warning_count == 1
    assert aggregator.summary().success_count == 1
    assert len(aggregator.outcomes) == 1
    assert aggregator.warnings == ("jdoe: group VPN Users: group not found",)


def test_outcomes_are_read_only() -> None:
    aggregator = OutcomeAggregator()
    aggregator.record(outcome(OutcomeStatus.SUCCESS))

    assert isinstance(aggregator.outcomes, tuple)


def test_error_detail_required_only_for_errors() -> None:
    with pytest.raises(ValueError):
        ProcessingOutcome(username="jdoe", action=Action.DELETE, status=OutcomeStatus.ERROR)
    with pytest.raises(ValueError):
        ProcessingOutcome(username="jdoe", action=Action.DELETE, status=OutcomeStatus.SUCCESS,
                          error_detail="oops")
