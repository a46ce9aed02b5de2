"""Unit tests for the action logging context."""

import asyncio
import logging

import pytest

from arrqueue.logging.context import (
    ActionContextFilter,
    action_context,
    clear_action_context,
    get_action_context,
    set_action_context,
)


def _record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg="message",
        args=(),
        exc_info=None,
    )


class TestSetAndGetActionContext:
    """Tests for set_action_context and get_action_context functions."""

    def test_set_and_get_full_context(self) -> None:
        """Test setting and getting both context values."""
        set_action_context("a1b2c3d4", "sonarr-main")
        assert get_action_context() == ("a1b2c3d4", "sonarr-main")

        clear_action_context()

    def test_set_partial_context(self) -> None:
        set_action_context("a1b2c3d4")
        assert get_action_context() == ("a1b2c3d4", None)

        clear_action_context()

    def test_clear_context(self) -> None:
        set_action_context("a1b2c3d4", "sonarr-main")
        clear_action_context()
        assert get_action_context() == (None, None)


class TestActionContextManager:
    """Tests for the action_context context manager."""

    def test_restores_previous_values(self) -> None:
        with action_context("outer"):
            with action_context(instance_id="radarr-main"):
                assert get_action_context() == ("outer", "radarr-main")
            assert get_action_context() == ("outer", None)
        assert get_action_context() == (None, None)

    def test_restores_on_exception(self) -> None:
        """Context is restored even when the body raises."""
        with pytest.raises(RuntimeError):
            with action_context("a1", "sonarr-main"):
                raise RuntimeError("boom")
        assert get_action_context() == (None, None)

    @pytest.mark.asyncio
    async def test_tasks_keep_their_own_instance(self) -> None:
        """Concurrent tasks do not see each other's instance id."""

        async def worker(instance_id: str) -> tuple[str | None, str | None]:
            with action_context(instance_id=instance_id):
                await asyncio.sleep(0)
                return get_action_context()

        with action_context("shared"):
            results = await asyncio.gather(worker("one"), worker("two"))

        assert results == [("shared", "one"), ("shared", "two")]


class TestActionContextFilter:
    """Tests for ActionContextFilter."""

    def test_no_context(self) -> None:
        record = _record()
        assert ActionContextFilter().filter(record) is True
        assert record.action_id is None
        assert record.instance_id is None
        assert record.action_tag == ""

    @pytest.mark.parametrize(
        "action_id,instance_id,expected",
        [
            ("a1", "sonarr-main", "[a1:sonarr-main] "),
            ("a1", None, "[a1] "),
            (None, "sonarr-main", "[sonarr-main] "),
        ],
    )
    def test_action_tag(self, action_id, instance_id, expected) -> None:
        record = _record()
        with action_context(action_id, instance_id):
            ActionContextFilter().filter(record)
        assert record.action_tag == expected
        assert record.action_id == action_id
        assert record.instance_id == instance_id
