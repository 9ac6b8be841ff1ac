"""Unit tests for TransitionDetector.

Covers first-observation silence, exactly-once reporting per change, and
property tests over arbitrary status sequences.
"""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from railwatch.models.resources import DeploymentStatus
from railwatch.tracker import TransitionDetector
from tests.conftest import make_deployment

_statuses = st.sampled_from(list(DeploymentStatus))


class TestFirstObservation:
    def test_first_observation_returns_none(self) -> None:
        detector = TransitionDetector()
        assert detector.observe(make_deployment(status=DeploymentStatus.FAILED)) is None

    def test_first_observation_records_status(self) -> None:
        detector = TransitionDetector()
        detector.observe(make_deployment(status=DeploymentStatus.DEPLOYING))
        assert detector.last_status("d1") == DeploymentStatus.DEPLOYING
        assert len(detector) == 1

    @given(status=_statuses)
    def test_first_observation_is_silent_for_any_status(self, status: DeploymentStatus) -> None:
        detector = TransitionDetector()
        assert detector.observe(make_deployment(status=status)) is None


class TestTransitions:
    def test_change_emits_event(self) -> None:
        detector = TransitionDetector()
        detector.observe(make_deployment(status=DeploymentStatus.BUILDING))
        event = detector.observe(make_deployment(status=DeploymentStatus.DEPLOYING))
        assert event is not None
        assert event.deployment_id == "d1"
        assert event.from_status == DeploymentStatus.BUILDING
        assert event.to_status == DeploymentStatus.DEPLOYING

    def test_repeated_new_status_reports_once(self) -> None:
        detector = TransitionDetector()
        detector.observe(make_deployment(status=DeploymentStatus.DEPLOYING))
        first = detector.observe(make_deployment(status=DeploymentStatus.SUCCESS))
        second = detector.observe(make_deployment(status=DeploymentStatus.SUCCESS))
        assert first is not None
        assert second is None

    def test_ids_are_tracked_independently(self) -> None:
        detector = TransitionDetector()
        detector.observe(make_deployment("a", DeploymentStatus.BUILDING))
        assert detector.observe(make_deployment("b", DeploymentStatus.SUCCESS)) is None
        event = detector.observe(make_deployment("a", DeploymentStatus.FAILED))
        assert event is not None and event.deployment_id == "a"

    def test_building_deploying_success_yields_one_completion(self) -> None:
        """Three ticks Building → Deploying → Success: the last event is Deploying → Success."""
        detector = TransitionDetector()
        events = [
            detector.observe(make_deployment(status=status))
            for status in (DeploymentStatus.BUILDING, DeploymentStatus.DEPLOYING, DeploymentStatus.SUCCESS)
        ]
        assert events[0] is None
        assert events[2] is not None
        assert (events[2].from_status, events[2].to_status) == (DeploymentStatus.DEPLOYING, DeploymentStatus.SUCCESS)

    def test_observe_all_collects_events(self) -> None:
        detector = TransitionDetector()
        detector.observe_all([make_deployment("a", DeploymentStatus.BUILDING), make_deployment("b")])
        events = detector.observe_all(
            [make_deployment("a", DeploymentStatus.SUCCESS), make_deployment("b", DeploymentStatus.BUILDING)]
        )
        assert [e.deployment_id for e in events] == ["a"]


class TestProperties:
    @given(status=_statuses)
    def test_same_status_twice_yields_at_most_one_event(self, status: DeploymentStatus) -> None:
        detector = TransitionDetector()
        detector.observe(make_deployment(status=DeploymentStatus.BUILDING))
        results = [detector.observe(make_deployment(status=status)) for _ in range(2)]
        assert sum(r is not None for r in results) <= 1
        assert results[1] is None

    @given(sequence=st.lists(_statuses, min_size=1, max_size=30))
    def test_event_count_equals_adjacent_changes(self, sequence: list[DeploymentStatus]) -> None:
        detector = TransitionDetector()
        events = [detector.observe(make_deployment(status=status)) for status in sequence]
        expected = sum(1 for prev, cur in zip(sequence, sequence[1:]) if prev != cur)
        assert sum(e is not None for e in events) == expected

    @given(sequence=st.lists(_statuses, min_size=1, max_size=30))
    def test_last_status_tracks_newest_observation(self, sequence: list[DeploymentStatus]) -> None:
        detector = TransitionDetector()
        for status in sequence:
            detector.observe(make_deployment(status=status))
        assert detector.last_status("d1") == sequence[-1]
        assert len(detector) == 1
