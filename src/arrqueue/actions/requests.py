"""Pydantic request models for queue actions.

These describe single-item and bulk action payloads in the camelCase shape
shared with the queue API, with the same defaults as QueueActionOptions.
The CLI prints them for --dry-run so the planned requests can be reviewed
before anything is sent.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from arrqueue.actions.planner import RemoteCall
from arrqueue.queue.models import QueueAction, Service


class SearchPayloadModel(BaseModel):
    """Search target attached to a remove-and-search request."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    series_id: int | None = Field(default=None, alias="seriesId")
    episode_ids: list[int] | None = Field(default=None, alias="episodeIds")
    movie_id: int | None = Field(default=None, alias="movieId")


class _ActionRequestBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    instance_id: str = Field(alias="instanceId")
    service: Service
    action: QueueAction
    remove_from_client: bool = Field(default=True, alias="removeFromClient")
    blocklist: bool = False
    change_category: bool = Field(default=False, alias="changeCategory")
    search: bool = False


class QueueActionRequest(_ActionRequestBase):
    """Request for an action on one queue item."""

    item_id: int | str = Field(alias="itemId")
    download_id: str | None = Field(default=None, alias="downloadId")
    search_payload: SearchPayloadModel | None = Field(
        default=None, alias="searchPayload"
    )


class QueueBulkActionRequest(_ActionRequestBase):
    """Request for an action on several items of one instance."""

    ids: list[int | str] = Field(min_length=1)


def request_for_call(call: RemoteCall) -> QueueActionRequest | QueueBulkActionRequest:
    """Build the request model describing a planned remote call."""
    options = call.options
    common = {
        "instance_id": call.instance_id,
        "service": call.service,
        "action": call.action,
        "remove_from_client": options.remove_from_client,
        "blocklist": options.blocklist,
        "change_category": options.change_category,
        "search": options.search,
    }
    if call.ids is not None:
        return QueueBulkActionRequest(ids=list(call.ids), **common)

    search_payload = None
    if options.search_payload is not None:
        search_payload = SearchPayloadModel.model_validate(
            options.search_payload.to_dict()
        )
    return QueueActionRequest(
        item_id=call.item_id,
        download_id=options.download_id,
        search_payload=search_payload,
        **common,
    )
