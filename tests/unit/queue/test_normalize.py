"""Unit tests for raw queue record normalization."""

from __future__ import annotations

import pytest

from arrqueue.queue.models import QueueAction, Service
from arrqueue.queue.normalize import (
    collect_status_texts,
    derive_queue_actions,
    normalize_queue_item,
    parse_queue_id,
    to_int,
    to_number,
    to_string,
)


class TestCoercion:
    """Tests for the scalar coercion helpers."""

    def test_to_string(self) -> None:
        assert to_string("  abc ") == "abc"
        assert to_string("   ") is None
        assert to_string(42) == "42"
        assert to_string(True) is None
        assert to_string(None) is None

    def test_to_number(self) -> None:
        assert to_number(" 12 ") == 12
        assert to_number("1.5") == 1.5
        assert to_number("nan") is None
        assert to_number("abc") is None
        assert to_number(False) is None

    def test_to_int(self) -> None:
        assert to_int("7") == 7
        assert to_int(7.5) is None
        assert to_int(None) is None

    @pytest.mark.parametrize(
        "value,expected",
        [
            (12, 12),
            ("34", 34),
            (" 56 ", 56),
            ("abc", None),
            ("", None),
            (None, None),
            (True, None),
        ],
    )
    def test_parse_queue_id(self, value, expected) -> None:
        assert parse_queue_id(value) == expected


class TestCollectStatusTexts:
    """Tests for collect_status_texts()."""

    def test_collects_titles_messages_and_errors(self) -> None:
        raw = {
            "statusMessages": [
                {"title": "Title", "messages": ["one", " ", 3]},
                "garbage",
            ],
            "errorMessage": "Boom",
        }
        assert collect_status_texts(raw) == ["Title", "one", "Boom"]

    def test_non_list_status_messages(self) -> None:
        assert collect_status_texts({"statusMessages": "nope"}) == []


class TestDeriveQueueActions:
    """Tests for derive_queue_actions()."""

    def test_import_pending_with_download_id(self) -> None:
        actions = derive_queue_actions(
            {"downloadId": "ABC", "trackedDownloadState": "importPending"}
        )
        assert actions.can_manual_import is True
        assert actions.recommended_action is QueueAction.MANUAL_IMPORT

    def test_manual_import_requires_download_id(self) -> None:
        actions = derive_queue_actions(
            {
                "trackedDownloadState": "importPending",
                "statusMessages": [{"messages": ["Manual import required"]}],
            }
        )
        assert actions.can_manual_import is False

    def test_manual_import_reason_recorded(self) -> None:
        actions = derive_queue_actions(
            {
                "downloadId": "ABC",
                "statusMessages": [{"messages": ["File could not be imported"]}],
            }
        )
        assert actions.can_manual_import is True
        assert actions.manual_import_reason == "File could not be imported"

    def test_warning_status_allows_retry(self) -> None:
        actions = derive_queue_actions({"trackedDownloadStatus": "warning"})
        assert actions.can_retry is True
        assert actions.can_manual_import is False
        assert actions.recommended_action is QueueAction.RETRY

    def test_retry_reason(self) -> None:
        actions = derive_queue_actions(
            {"statusMessages": [{"messages": ["Connection timed out"]}]}
        )
        assert actions.retry_reason == "Connection timed out"

    def test_healthy_download(self) -> None:
        actions = derive_queue_actions({"status": "downloading"})
        assert actions.can_retry is False
        assert actions.can_manual_import is False
        assert actions.can_remove is True
        assert actions.can_change_category is False
        assert actions.recommended_action is None


class TestNormalizeQueueItem:
    """Tests for normalize_queue_item()."""

    def test_sonarr_record(self) -> None:
        raw = {
            "id": 101,
            "downloadId": "HASH",
            "title": "Show.S01E01.1080p",
            "seriesId": 5,
            "episodeId": 77,
            "series": {"id": 5, "title": "Show"},
            "size": "1000",
            "sizeleft": 250,
            "status": "downloading",
            "protocol": "torrent",
            "downloadClient": "qBittorrent",
            "statusMessages": [{"title": "Show.S01E01", "messages": ["a"]}],
        }
        record = normalize_queue_item(raw, Service.SONARR, "sonarr-main", "Sonarr")

        assert record.id == 101
        assert record.download_id == "HASH"
        assert record.series_id == 5
        assert record.episode_id == 77
        assert record.series_title == "Show"
        assert record.size == 1000
        assert record.sizeleft == 250
        assert record.download_protocol == "torrent"
        assert record.download_client == "qBittorrent"
        assert record.status_messages[0].messages == ("a",)
        assert record.actions is not None
        assert record.actions.can_change_category is True

    def test_radarr_record_uses_nested_movie(self) -> None:
        raw = {"id": 3, "movie": {"id": 9, "title": "Film"}}
        record = normalize_queue_item(raw, Service.RADARR, "radarr-main", "Radarr")
        assert record.movie_id == 9
        assert record.movie_title == "Film"
        assert record.title == "Film"

    def test_untitled_fallback(self) -> None:
        record = normalize_queue_item({}, Service.RADARR, "r", "Radarr")
        assert record.title == "Untitled"
        assert record.id is None

    def test_alternate_id_fields(self) -> None:
        record = normalize_queue_item(
            {"queueId": " q-1 ", "sizeLeft": "5"}, Service.SONARR, "s", "Sonarr"
        )
        assert record.id == "q-1"
        assert record.sizeleft == 5

    def test_empty_status_entries_dropped(self) -> None:
        raw = {"statusMessages": [{"title": " ", "messages": []}, {"type": "Warn"}]}
        record = normalize_queue_item(raw, Service.SONARR, "s", "Sonarr")
        assert [entry.title for entry in record.status_messages] == ["Warn"]
