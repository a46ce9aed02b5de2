"""Unit tests for remote call planning."""

from __future__ import annotations

import pytest

from arrqueue.actions.exceptions import ManualImportUnavailableError
from arrqueue.actions.planner import (
    RemoteCall,
    build_search_payload,
    plan_remote_calls,
)
from arrqueue.queue.models import (
    QueueAction,
    QueueActionOptions,
    RemoteCallOptions,
    SearchPayload,
    Service,
)


@pytest.fixture
def radarr_record(make_record):
    def factory(**overrides):
        values = {
            "service": Service.RADARR,
            "instance_id": "radarr-main",
            "instance_name": "Radarr",
        }
        values.update(overrides)
        return make_record(**values)

    return factory


class TestBuildSearchPayload:
    """Tests for build_search_payload()."""

    def test_sonarr_series_and_episode(self, make_record) -> None:
        payload = build_search_payload(make_record(series_id=5, episode_id=9))
        assert payload == SearchPayload(series_id=5, episode_ids=(9,))

    def test_sonarr_series_only(self, make_record) -> None:
        payload = build_search_payload(make_record(series_id=5))
        assert payload == SearchPayload(series_id=5)

    def test_sonarr_without_ids(self, make_record) -> None:
        assert build_search_payload(make_record()) is None

    def test_radarr_movie(self, radarr_record) -> None:
        payload = build_search_payload(radarr_record(movie_id=3))
        assert payload == SearchPayload(movie_id=3)
        assert payload.to_dict() == {"movieId": 3}

    def test_radarr_without_movie(self, radarr_record) -> None:
        assert build_search_payload(radarr_record(series_id=5)) is None


class TestPlanRetry:
    """Retry planning partitions by instance."""

    def test_single_item_call(self, make_record) -> None:
        calls = plan_remote_calls(QueueAction.RETRY, [make_record(id=1)])
        assert calls == [
            RemoteCall(
                instance_id="sonarr-main",
                service=Service.SONARR,
                action=QueueAction.RETRY,
                options=RemoteCallOptions(),
                item_id=1,
            )
        ]
        assert calls[0].is_bulk is False

    def test_bulk_call_per_instance(self, make_record, radarr_record) -> None:
        records = [
            make_record(id=1),
            make_record(id=2),
            radarr_record(id=3),
        ]
        calls = plan_remote_calls(QueueAction.RETRY, records)

        assert len(calls) == 2
        sonarr, radarr = calls
        assert sonarr.ids == (1, 2)
        assert sonarr.is_bulk is True
        assert radarr.item_id == 3
        assert radarr.ids is None

    def test_capability_filter_applied(self, make_record, capabilities) -> None:
        records = [
            make_record(id=1),
            make_record(id=2, actions=capabilities(can_retry=False)),
        ]
        calls = plan_remote_calls(QueueAction.RETRY, records)
        assert [call.item_id for call in calls] == [1]

    def test_nothing_capable_is_noop(self, make_record, capabilities) -> None:
        records = [make_record(id=1, actions=capabilities(can_retry=False))]
        assert plan_remote_calls(QueueAction.RETRY, records) == []

    def test_empty_selection_is_noop(self) -> None:
        assert plan_remote_calls(QueueAction.DELETE, []) == []

    def test_records_without_id_are_skipped(self, make_record) -> None:
        calls = plan_remote_calls(
            QueueAction.RETRY, [make_record(id=None), make_record(id=4)]
        )
        assert [call.item_id for call in calls] == [4]


class TestPlanDelete:
    """Delete planning."""

    def test_options_forwarded(self, make_record) -> None:
        options = QueueActionOptions(
            remove_from_client=False, blocklist=True, change_category=True
        )
        calls = plan_remote_calls(
            QueueAction.DELETE, [make_record(id=1), make_record(id=2)], options
        )
        assert len(calls) == 1
        assert calls[0].options == RemoteCallOptions(
            remove_from_client=False, blocklist=True, change_category=True
        )

    def test_delete_ignores_capabilities(self, make_record, capabilities) -> None:
        records = [make_record(id=1, actions=capabilities(can_remove=False))]
        assert len(plan_remote_calls(QueueAction.DELETE, records)) == 1

    def test_search_yields_call_per_record(self, make_record, radarr_record) -> None:
        records = [
            make_record(id=1, series_id=5, episode_id=9),
            make_record(id=2),
            radarr_record(id=3, movie_id=7),
        ]
        calls = plan_remote_calls(
            QueueAction.DELETE, records, QueueActionOptions(search=True)
        )

        assert [call.item_id for call in calls] == [1, 2, 3]
        assert all(call.options.search for call in calls)
        assert calls[0].options.search_payload == SearchPayload(
            series_id=5, episode_ids=(9,)
        )
        assert calls[1].options.search_payload is None
        assert calls[2].options.search_payload == SearchPayload(movie_id=7)


class TestPlanManualImport:
    """Manual import planning groups by download."""

    def test_one_call_per_download(self, make_record, capabilities) -> None:
        allowed = capabilities(can_manual_import=True)
        records = [
            make_record(id=1, download_id="A", actions=allowed),
            make_record(id=2, download_id="A", actions=allowed),
            make_record(id=3, download_id="B", actions=allowed),
        ]
        calls = plan_remote_calls(QueueAction.MANUAL_IMPORT, records)

        assert [call.item_id for call in calls] == [1, 3]
        assert [call.options.download_id for call in calls] == ["A", "B"]
        assert all(not call.is_bulk for call in calls)

    def test_same_download_on_two_instances(self, make_record, capabilities) -> None:
        allowed = capabilities(can_manual_import=True)
        records = [
            make_record(id=1, download_id="A", actions=allowed),
            make_record(id=1, download_id="A", instance_id="other", actions=allowed),
        ]
        calls = plan_remote_calls(QueueAction.MANUAL_IMPORT, records)
        assert [call.instance_id for call in calls] == ["sonarr-main", "other"]

    def test_missing_download_ids_raise(self, make_record, capabilities) -> None:
        records = [
            make_record(id=1, actions=capabilities(can_manual_import=True)),
        ]
        with pytest.raises(ManualImportUnavailableError):
            plan_remote_calls(QueueAction.MANUAL_IMPORT, records)

    def test_partial_download_ids_skip_missing(self, make_record, capabilities) -> None:
        allowed = capabilities(can_manual_import=True)
        records = [
            make_record(id=1, actions=allowed),
            make_record(id=2, download_id="A", actions=allowed),
        ]
        calls = plan_remote_calls(QueueAction.MANUAL_IMPORT, records)
        assert [call.item_id for call in calls] == [2]

    def test_incapable_records_are_noop(self, make_record) -> None:
        records = [make_record(id=1, download_id="A")]
        assert plan_remote_calls(QueueAction.MANUAL_IMPORT, records) == []
