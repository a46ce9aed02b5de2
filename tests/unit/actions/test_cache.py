"""Unit tests for optimistic cache projection."""

from __future__ import annotations

from dataclasses import replace

import pytest

from arrqueue.actions.cache import (
    PROVISIONAL_STATUS,
    InMemoryQueueCache,
    QueueCache,
    apply_optimistic_update,
)
from arrqueue.queue.models import QueueAction, Service


@pytest.fixture
def view(make_record, make_view):
    return make_view(
        [
            make_record(id=1),
            make_record(id=2),
            make_record(
                id=1,
                service=Service.RADARR,
                instance_id="radarr-main",
                instance_name="Radarr",
            ),
        ]
    )


class TestApplyOptimisticUpdate:
    """Tests for apply_optimistic_update()."""

    def test_none_stays_none(self, make_record) -> None:
        assert (
            apply_optimistic_update(None, QueueAction.DELETE, [make_record()]) is None
        )

    def test_delete_removes_targets_everywhere(self, view, make_record) -> None:
        projected = apply_optimistic_update(
            view, QueueAction.DELETE, [make_record(id=1)]
        )

        assert [r.id for r in projected.aggregated] == [2, 1]
        assert projected.aggregated[1].service is Service.RADARR
        assert [r.id for r in projected.instances[0].data] == [2]
        assert len(projected.instances[1].data) == 1
        assert projected.total_count == 2

    def test_retry_rewrites_status(self, view, make_record) -> None:
        projected = apply_optimistic_update(
            view, QueueAction.RETRY, [make_record(id=2)]
        )

        statuses = [r.status for r in projected.aggregated]
        assert statuses == [
            "downloading",
            PROVISIONAL_STATUS[QueueAction.RETRY],
            "downloading",
        ]
        assert projected.instances[0].data[1].status == "Retry requested"
        assert projected.total_count == view.total_count

    def test_manual_import_label(self, view, make_record) -> None:
        projected = apply_optimistic_update(
            view, QueueAction.MANUAL_IMPORT, [make_record(id=1)]
        )
        assert projected.aggregated[0].status == "Manual import requested"

    def test_records_without_id_never_match(self, make_record, make_view) -> None:
        view = make_view([make_record(id=None), make_record(id=1)])
        projected = apply_optimistic_update(
            view, QueueAction.DELETE, [make_record(id=None)]
        )
        assert projected is view

    def test_previous_view_not_mutated(self, view, make_record) -> None:
        before = view.aggregated
        apply_optimistic_update(view, QueueAction.DELETE, [make_record(id=1)])
        assert view.aggregated is before
        assert len(view.aggregated) == 3

    @pytest.mark.parametrize(
        "action", [QueueAction.RETRY, QueueAction.MANUAL_IMPORT, QueueAction.DELETE]
    )
    def test_total_count_follows_aggregated(self, view, make_record, action) -> None:
        stale = replace(view, total_count=10)

        projected = apply_optimistic_update(stale, action, [make_record(id=2)])

        assert projected.total_count == len(projected.aggregated)


class TestInMemoryQueueCache:
    """Tests for InMemoryQueueCache."""

    def test_satisfies_protocol(self) -> None:
        assert isinstance(InMemoryQueueCache(), QueueCache)

    @pytest.mark.asyncio
    async def test_read_write_invalidate(self, view) -> None:
        cache = InMemoryQueueCache()
        assert cache.read() is None

        cache.write(view)
        assert cache.read() is view
        assert cache.stale is False

        await cache.invalidate()
        assert cache.stale is True
