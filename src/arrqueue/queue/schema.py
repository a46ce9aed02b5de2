"""Pydantic models for the aggregated queue JSON shape.

The aggregated view is exchanged as camelCase JSON:

    {
      "instances": [{"instanceId", "instanceName", "service", "data": [...]}],
      "aggregated": [...],
      "totalCount": 3
    }

These models validate snapshots read from disk and convert to and from the
frozen dataclasses used by the pipeline.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from arrqueue.queue.models import (
    ActionCapabilities,
    InstanceQueue,
    MultiInstanceQueue,
    QueueAction,
    QueueRecord,
    Service,
    StatusMessage,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class StatusMessageModel(_CamelModel):
    """Pydantic model for a statusMessages entry."""

    title: str | None = None
    messages: list[str] = Field(default_factory=list)


class ReferenceModel(_CamelModel):
    """Pydantic model for a nested series/movie summary."""

    id: int | None = None
    title: str | None = None


class ActionCapabilitiesModel(_CamelModel):
    """Pydantic model for capability hints."""

    can_retry: bool | None = Field(default=None, alias="canRetry")
    can_manual_import: bool | None = Field(default=None, alias="canManualImport")
    can_remove: bool | None = Field(default=None, alias="canRemove")
    can_change_category: bool | None = Field(default=None, alias="canChangeCategory")
    recommended_action: QueueAction | None = Field(
        default=None, alias="recommendedAction"
    )
    manual_import_reason: str | None = Field(default=None, alias="manualImportReason")
    retry_reason: str | None = Field(default=None, alias="retryReason")


class QueueItemModel(_CamelModel):
    """Pydantic model for one aggregated queue item."""

    id: int | str | None = None
    download_id: str | None = Field(default=None, alias="downloadId")
    title: str | None = None
    series_id: int | None = Field(default=None, alias="seriesId")
    episode_id: int | None = Field(default=None, alias="episodeId")
    movie_id: int | None = Field(default=None, alias="movieId")
    series: ReferenceModel | None = None
    movie: ReferenceModel | None = None
    size: float | None = None
    sizeleft: float | None = None
    status: str | None = None
    protocol: str | None = None
    download_protocol: str | None = Field(default=None, alias="downloadProtocol")
    indexer: str | None = None
    download_client: str | None = Field(default=None, alias="downloadClient")
    tracked_download_state: str | None = Field(
        default=None, alias="trackedDownloadState"
    )
    tracked_download_status: str | None = Field(
        default=None, alias="trackedDownloadStatus"
    )
    status_messages: list[StatusMessageModel] = Field(
        default_factory=list, alias="statusMessages"
    )
    error_message: str | None = Field(default=None, alias="errorMessage")
    instance_id: str = Field(alias="instanceId")
    instance_name: str = Field(alias="instanceName")
    service: Service
    actions: ActionCapabilitiesModel | None = None

    def to_record(self) -> QueueRecord:
        """Convert to the pipeline's QueueRecord."""
        actions = None
        if self.actions is not None:
            actions = ActionCapabilities(**self.actions.model_dump())
        return QueueRecord(
            service=self.service,
            instance_id=self.instance_id,
            instance_name=self.instance_name,
            id=self.id,
            download_id=self.download_id,
            title=self.title,
            series_id=self.series_id,
            episode_id=self.episode_id,
            series_title=self.series.title if self.series else None,
            movie_id=self.movie_id,
            movie_title=self.movie.title if self.movie else None,
            status=self.status,
            tracked_download_status=self.tracked_download_status,
            tracked_download_state=self.tracked_download_state,
            error_message=self.error_message,
            status_messages=tuple(
                StatusMessage(title=entry.title, messages=tuple(entry.messages))
                for entry in self.status_messages
            ),
            size=self.size,
            sizeleft=self.sizeleft,
            protocol=self.protocol,
            download_protocol=self.download_protocol,
            download_client=self.download_client,
            indexer=self.indexer,
            actions=actions,
        )

    @classmethod
    def from_record(cls, record: QueueRecord) -> QueueItemModel:
        """Build the wire model from a QueueRecord."""
        actions = None
        if record.actions is not None:
            actions = ActionCapabilitiesModel(**vars(record.actions))
        return cls(
            id=record.id,
            download_id=record.download_id,
            title=record.title,
            series_id=record.series_id,
            episode_id=record.episode_id,
            movie_id=record.movie_id,
            series=(
                ReferenceModel(id=record.series_id, title=record.series_title)
                if record.series_title
                else None
            ),
            movie=(
                ReferenceModel(id=record.movie_id, title=record.movie_title)
                if record.movie_title
                else None
            ),
            size=record.size,
            sizeleft=record.sizeleft,
            status=record.status,
            protocol=record.protocol,
            download_protocol=record.download_protocol,
            indexer=record.indexer,
            download_client=record.download_client,
            tracked_download_state=record.tracked_download_state,
            tracked_download_status=record.tracked_download_status,
            status_messages=[
                StatusMessageModel(title=entry.title, messages=list(entry.messages))
                for entry in record.status_messages
            ],
            error_message=record.error_message,
            instance_id=record.instance_id,
            instance_name=record.instance_name,
            service=record.service,
            actions=actions,
        )


class InstanceQueueModel(_CamelModel):
    """Pydantic model for one instance's queue."""

    instance_id: str = Field(alias="instanceId")
    instance_name: str = Field(alias="instanceName")
    service: Service
    data: list[QueueItemModel] = Field(default_factory=list)


class MultiInstanceQueueModel(_CamelModel):
    """Pydantic model for the aggregated queue view."""

    instances: list[InstanceQueueModel] = Field(default_factory=list)
    aggregated: list[QueueItemModel] = Field(default_factory=list)
    total_count: int = Field(default=0, alias="totalCount")

    def to_view(self) -> MultiInstanceQueue:
        """Convert to the cached MultiInstanceQueue dataclass."""
        return MultiInstanceQueue(
            instances=tuple(
                InstanceQueue(
                    instance_id=instance.instance_id,
                    instance_name=instance.instance_name,
                    service=instance.service,
                    data=tuple(item.to_record() for item in instance.data),
                )
                for instance in self.instances
            ),
            aggregated=tuple(item.to_record() for item in self.aggregated),
            total_count=self.total_count,
        )

    @classmethod
    def from_view(cls, view: MultiInstanceQueue) -> MultiInstanceQueueModel:
        """Build the wire model from a MultiInstanceQueue."""
        return cls(
            instances=[
                InstanceQueueModel(
                    instance_id=instance.instance_id,
                    instance_name=instance.instance_name,
                    service=instance.service,
                    data=[QueueItemModel.from_record(r) for r in instance.data],
                )
                for instance in view.instances
            ],
            aggregated=[QueueItemModel.from_record(r) for r in view.aggregated],
            total_count=view.total_count,
        )


def load_queue_snapshot(content: str) -> MultiInstanceQueue:
    """Parse an aggregated queue JSON document.

    Raises:
        pydantic.ValidationError: If the document does not match the shape.
    """
    return MultiInstanceQueueModel.model_validate_json(content).to_view()


def dump_queue_snapshot(view: MultiInstanceQueue) -> str:
    """Serialize an aggregated queue view to camelCase JSON."""
    return MultiInstanceQueueModel.from_view(view).model_dump_json(
        by_alias=True, exclude_none=True, indent=2
    )
