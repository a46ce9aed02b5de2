"""Queue domain models.

This module defines the dataclasses and enums shared by the queue pipeline:
normalized queue records pulled from Sonarr/Radarr instances, the diagnostic
lines extracted from them, issue analyses and the summary rows produced by
the grouping engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Identifier as exposed by the backend (numeric queue id or opaque string)
QueueItemId = str | int


class Service(Enum):
    """Supported media-automation backends."""

    SONARR = "sonarr"  # Episodic (series) backend
    RADARR = "radarr"  # Film backend


class MessageTone(Enum):
    """Severity of a diagnostic line, ordered info < warning < error."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        """Numeric ordering used for tone escalation."""
        return _TONE_RANK[self]


_TONE_RANK: dict[MessageTone, int] = {
    MessageTone.INFO: 0,
    MessageTone.WARNING: 1,
    MessageTone.ERROR: 2,
}


class IssueType(Enum):
    """Problem categories assigned by the issue classifier."""

    FAILED_IMPORT = "failed_import"
    STALLED = "stalled"
    DOWNLOAD_ERROR = "download_error"
    IMPORT_ERROR = "import_error"
    WARNING = "warning"
    TIMEOUT = "timeout"
    MISSING_FILES = "missing_files"


class RecommendedAction(Enum):
    """Remediation suggested for a problematic record."""

    MANUAL_IMPORT = "manual_import"
    RETRY = "retry"
    BLOCKLIST = "blocklist"


class QueueAction(Enum):
    """Actions a user can trigger against queue records."""

    RETRY = "retry"
    DELETE = "delete"
    MANUAL_IMPORT = "manualImport"


@dataclass(frozen=True)
class StatusMessage:
    """One entry of a record's statusMessages array."""

    title: str | None = None
    messages: tuple[str, ...] = ()


@dataclass(frozen=True)
class ActionCapabilities:
    """Capability hints reported for a queue record.

    Every flag is optional: None means the backend did not say. Resolution
    of an unknown flag is per action (see arrqueue.queue.capabilities).
    """

    can_retry: bool | None = None
    can_manual_import: bool | None = None
    can_remove: bool | None = None
    can_change_category: bool | None = None
    recommended_action: QueueAction | None = None
    manual_import_reason: str | None = None
    retry_reason: str | None = None


@dataclass(frozen=True)
class QueueRecord:
    """A download-queue record owned by one backend instance.

    Records are read-only to this package. Numeric fields may be missing
    or malformed; consumers degrade to safe defaults instead of raising.
    """

    service: Service
    instance_id: str
    instance_name: str
    id: QueueItemId | None = None
    download_id: str | None = None
    title: str | None = None
    # Sonarr cross-references
    series_id: int | None = None
    episode_id: int | None = None
    series_title: str | None = None
    # Radarr cross-references
    movie_id: int | None = None
    movie_title: str | None = None
    # Diagnostic surface
    status: str | None = None
    tracked_download_status: str | None = None
    tracked_download_state: str | None = None
    error_message: str | None = None
    status_messages: tuple[StatusMessage, ...] = ()
    # Byte counts
    size: float | None = None
    sizeleft: float | None = None
    # Transport
    protocol: str | None = None
    download_protocol: str | None = None
    download_client: str | None = None
    indexer: str | None = None
    actions: ActionCapabilities | None = None


@dataclass(frozen=True)
class StatusLine:
    """One diagnostic fact extracted from a record.

    The key is derived from record identity and position so list renderers
    get a stable identifier. It is not used for equality of the text.
    """

    key: str
    text: str
    tone: MessageTone


@dataclass
class CompactLine:
    """Deduplicated status line with an occurrence count."""

    key: str
    text: str
    tone: MessageTone
    count: int = 1


@dataclass(frozen=True)
class IssueSummary:
    """Number of diagnostic occurrences per tone."""

    tone: MessageTone
    count: int


@dataclass(frozen=True)
class IssueAnalysis:
    """Structured problem analysis of a single queue record."""

    is_problematic: bool
    issue_types: frozenset[IssueType]
    severity: MessageTone
    can_retry: bool
    can_manual_import: bool
    recommended_action: RecommendedAction | None


@dataclass(frozen=True)
class ActionCounts:
    """How many records of a row permit each action."""

    manual_import: int = 0
    retry: int = 0


@dataclass(frozen=True)
class SummaryRow:
    """Displayable row: a group of related records or a single record.

    A row of type "group" always carries at least two items; a row of type
    "item" carries exactly one.
    """

    key: str
    type: str  # "group" or "item"
    title: str
    service: Service
    instance_name: str | None
    items: tuple[QueueRecord, ...]
    issue_lines: tuple[StatusLine, ...]
    issue_summary: tuple[IssueSummary, ...]
    status_label: str
    progress_value: int | None
    detail_available: bool
    action_counts: ActionCounts
    primary_action: QueueAction | None = None
    group_key: str | None = None
    group_count: int | None = None

    @property
    def is_group(self) -> bool:
        """True for multi-record group rows."""
        return self.type == "group"


@dataclass(frozen=True)
class InstanceQueue:
    """Queue records fetched from one backend instance."""

    instance_id: str
    instance_name: str
    service: Service
    data: tuple[QueueRecord, ...] = ()


@dataclass(frozen=True)
class MultiInstanceQueue:
    """Aggregated queue view across every configured instance.

    This is the value held by the queue cache.
    """

    instances: tuple[InstanceQueue, ...] = ()
    aggregated: tuple[QueueRecord, ...] = ()
    total_count: int = 0

    @classmethod
    def empty(cls) -> MultiInstanceQueue:
        """Create an empty view."""
        return cls()


@dataclass(frozen=True)
class SearchPayload:
    """Search target derived from a record for remove-and-search."""

    series_id: int | None = None
    episode_ids: tuple[int, ...] | None = None
    movie_id: int | None = None

    def to_dict(self) -> dict[str, int | list[int]]:
        """Serialize to the camelCase shape used by the backends.

        Unset fields are omitted entirely rather than sent as null.
        """
        data: dict[str, int | list[int]] = {}
        if self.series_id is not None:
            data["seriesId"] = self.series_id
        if self.episode_ids:
            data["episodeIds"] = list(self.episode_ids)
        if self.movie_id is not None:
            data["movieId"] = self.movie_id
        return data


@dataclass(frozen=True)
class RemoteCallOptions:
    """Options forwarded with every remote single or bulk call."""

    remove_from_client: bool = True
    blocklist: bool = False
    change_category: bool = False
    search: bool = False
    download_id: str | None = None
    search_payload: SearchPayload | None = None


@dataclass
class QueueActionOptions:
    """Caller-facing options bag for a bulk action.

    Defaults mirror the behavior when the caller omits the options:
    remove from the download client, no blocklist, no category change,
    no follow-up search.
    """

    remove_from_client: bool = True
    blocklist: bool = False
    change_category: bool = False
    search: bool = False

    def to_remote(self, **overrides) -> RemoteCallOptions:
        """Build the options sent with a remote call."""
        values = {
            "remove_from_client": self.remove_from_client,
            "blocklist": self.blocklist,
            "change_category": self.change_category,
            "search": self.search,
        }
        values.update(overrides)
        return RemoteCallOptions(**values)


def build_key(record: QueueRecord) -> str:
    """Build the identity key of a record: service:instanceId:id."""
    return f"{record.service.value}:{record.instance_id}:{record.id}"


def match_key(record: QueueRecord) -> str | None:
    """Identity key used to match cached records, None when unmatchable.

    Records without a backend id can never be targeted by an action.
    """
    if record.id is None:
        return None
    return build_key(record)
