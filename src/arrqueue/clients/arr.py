"""Sonarr/Radarr v3 API client for download-queue operations.

Both backends expose the same queue, command and manual-import endpoints
under /api/v3, so one client serves either service; only search commands
and queue query parameters differ.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from arrqueue.config.models import InstanceConfig
from arrqueue.queue.models import SearchPayload, Service

logger = logging.getLogger(__name__)

QUEUE_PAGE_SIZE = 1000

_APP_NAMES: dict[Service, str] = {
    Service.SONARR: "Sonarr",
    Service.RADARR: "Radarr",
}


class ArrClientError(Exception):
    """Base exception for backend client errors."""


class ArrConnectionError(ArrClientError):
    """Raised when a request to the backend fails."""


class ArrAuthError(ArrConnectionError):
    """Raised when the backend rejects the API key."""


class ArrManualImportError(ArrClientError):
    """Raised when a download cannot be imported automatically."""


def _bool_param(value: bool) -> str:
    return "true" if value else "false"


class ArrQueueClient:
    """Async HTTP client for one Sonarr or Radarr instance.

    The underlying httpx.AsyncClient is created lazily and must be released
    with aclose().
    """

    def __init__(
        self,
        config: InstanceConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Instance connection settings.
            transport: Optional httpx transport (e.g. httpx.MockTransport).
        """
        self._config = config
        self._base_url = config.url.rstrip("/")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def instance_id(self) -> str:
        return self._config.id

    @property
    def instance_name(self) -> str:
        return self._config.name

    @property
    def service(self) -> Service:
        return self._config.service

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._config.timeout_seconds,
                headers={"X-Api-Key": self._config.api_key},
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Send a request and map transport and HTTP failures.

        Raises:
            ArrAuthError: If the API key is invalid (401).
            ArrConnectionError: If the request fails for any other reason.
        """
        client = self._get_client()
        name = self._config.name
        try:
            response = await client.request(method, path, params=params, json=json)
            if response.status_code == 401:
                raise ArrAuthError(f"{name}: invalid API key")
            response.raise_for_status()
            return response
        except httpx.ConnectError as e:
            raise ArrConnectionError(f"Cannot connect to {name}: {e}") from e
        except httpx.TimeoutException as e:
            raise ArrConnectionError(f"{name}: connection timeout: {e}") from e
        except httpx.HTTPStatusError as e:
            raise ArrConnectionError(
                f"{name}: HTTP {e.response.status_code} for {method} {path}"
            ) from e
        except httpx.HTTPError as e:
            raise ArrConnectionError(f"{name}: request failed: {e}") from e

    async def get_status(self) -> dict[str, Any]:
        """Get system status from /api/v3/system/status."""
        response = await self._request("GET", "/api/v3/system/status")
        return response.json()

    async def validate_connection(self) -> bool:
        """Validate that the URL points at the configured service.

        Returns:
            True if connection is valid.

        Raises:
            ArrAuthError: If API key is invalid.
            ArrConnectionError: If connection fails or the application
                does not match the configured service.
        """
        status = await self.get_status()
        expected = _APP_NAMES[self.service]
        app_name = status.get("appName", "")
        if app_name != expected:
            raise ArrConnectionError(
                f"Expected {expected}, got {app_name or 'unknown'}. Check the URL."
            )
        logger.info(
            "Connected to %s %s (%s)",
            expected,
            status.get("version", "unknown"),
            self.instance_id,
        )
        return True

    async def get_queue(self) -> list[dict[str, Any]]:
        """Fetch the raw download queue.

        Returns:
            Raw queue records from the first page of /api/v3/queue.
        """
        params: dict[str, Any] = {"page": 1, "pageSize": QUEUE_PAGE_SIZE}
        if self.service is Service.SONARR:
            params["includeUnknownSeriesItems"] = "true"
            params["includeSeries"] = "true"
            params["includeEpisode"] = "true"
        else:
            params["includeUnknownMovieItems"] = "true"
            params["includeMovie"] = "true"

        response = await self._request("GET", "/api/v3/queue", params=params)
        payload = response.json()
        if isinstance(payload, dict):
            records = payload.get("records", [])
        elif isinstance(payload, list):
            records = payload
        else:
            records = []
        return [record for record in records if isinstance(record, dict)]

    @staticmethod
    def _delete_params(
        remove_from_client: bool, blocklist: bool, change_category: bool
    ) -> dict[str, str]:
        return {
            "removeFromClient": _bool_param(remove_from_client),
            "blocklist": _bool_param(blocklist),
            "changeCategory": _bool_param(change_category),
        }

    async def delete_queue_item(
        self,
        queue_id: int,
        *,
        remove_from_client: bool = True,
        blocklist: bool = False,
        change_category: bool = False,
    ) -> None:
        """Remove one item from the queue."""
        await self._request(
            "DELETE",
            f"/api/v3/queue/{queue_id}",
            params=self._delete_params(remove_from_client, blocklist, change_category),
        )

    async def bulk_delete_queue_items(
        self,
        queue_ids: Sequence[int],
        *,
        remove_from_client: bool = True,
        blocklist: bool = False,
        change_category: bool = False,
    ) -> None:
        """Remove several items from the queue in one request."""
        await self._request(
            "DELETE",
            "/api/v3/queue/bulk",
            params=self._delete_params(remove_from_client, blocklist, change_category),
            json={"ids": list(queue_ids)},
        )

    async def execute_command(self, body: dict[str, Any]) -> dict[str, Any]:
        """Queue a backend command via POST /api/v3/command."""
        response = await self._request("POST", "/api/v3/command", json=body)
        logger.debug("Queued %s command on %s", body.get("name"), self.instance_id)
        return response.json() if response.content else {}

    async def trigger_search(self, payload: SearchPayload | None) -> bool:
        """Trigger a search for the title behind a removed queue item.

        Sonarr searches the given episodes, or the whole series when no
        episode is known. Radarr searches the movie.

        Returns:
            True if a search command was sent, False when the payload gives
            nothing to search for.
        """
        if payload is None:
            return False

        if self.service is Service.SONARR:
            if payload.episode_ids:
                await self.execute_command(
                    {
                        "name": "EpisodeSearch",
                        "episodeIds": sorted(set(payload.episode_ids)),
                    }
                )
                return True
            if payload.series_id is not None:
                await self.execute_command(
                    {"name": "SeriesSearch", "seriesId": payload.series_id}
                )
                return True
            return False

        if payload.movie_id is None:
            return False
        await self.execute_command(
            {"name": "MoviesSearch", "movieIds": [payload.movie_id]}
        )
        return True

    async def get_manual_import_candidates(
        self, download_id: str
    ) -> list[dict[str, Any]]:
        """List importable files of a download from /api/v3/manualimport."""
        response = await self._request(
            "GET",
            "/api/v3/manualimport",
            params={"downloadId": download_id, "filterExistingFiles": "true"},
        )
        payload = response.json()
        if isinstance(payload, dict):
            payload = payload.get("items", [])
        if not isinstance(payload, list):
            return []
        return [item for item in payload if isinstance(item, dict) and item.get("path")]

    def _command_file(
        self, candidate: dict[str, Any], download_id: str
    ) -> tuple[dict[str, Any] | None, str | None]:
        """Build a ManualImport command file, or a reason to skip it."""
        name = (
            candidate.get("relativePath") or candidate.get("name") or candidate["path"]
        )
        rejections = [
            entry.get("reason") if isinstance(entry, dict) else str(entry)
            for entry in candidate.get("rejections") or []
        ]
        rejections = [reason for reason in rejections if reason]
        if rejections:
            return None, f"{name}: {'; '.join(rejections)}"

        file: dict[str, Any] = {
            "path": candidate["path"],
            "folderName": candidate.get("folderName") or "",
            "quality": candidate.get("quality"),
            "languages": candidate.get("languages") or [],
            "releaseGroup": candidate.get("releaseGroup"),
            "indexerFlags": candidate.get("indexerFlags") or 0,
            "downloadId": candidate.get("downloadId") or download_id,
        }

        if self.service is Service.SONARR:
            series_id = (candidate.get("series") or {}).get("id")
            episode_ids = [
                episode["id"]
                for episode in candidate.get("episodes") or []
                if isinstance(episode, dict) and episode.get("id")
            ]
            if not series_id or not episode_ids:
                return None, f"{name}: missing series or episode mapping"
            file.update(
                seriesId=series_id,
                episodeIds=episode_ids,
                releaseType=candidate.get("releaseType"),
                episodeFileId=candidate.get("episodeFileId"),
            )
            return file, None

        movie_id = (candidate.get("movie") or {}).get("id")
        if not movie_id:
            return None, f"{name}: missing movie mapping"
        file["movieId"] = movie_id
        if isinstance(candidate.get("movieFileId"), int):
            file["movieFileId"] = candidate["movieFileId"]
        return file, None

    async def manual_import(self, download_id: str) -> int:
        """Import every importable file of a download.

        Fetches the manual-import candidates of the download and submits a
        ManualImport command in "auto" mode for those without rejections.

        Args:
            download_id: Download client identifier of the download.

        Returns:
            Number of files submitted.

        Raises:
            ArrManualImportError: If the backend offers no importable file.
            ArrConnectionError: If a request fails.
        """
        candidates = await self.get_manual_import_candidates(download_id)
        if not candidates:
            raise ArrManualImportError(
                f"{self.instance_name} did not provide any importable files "
                "for this download."
            )

        files: list[dict[str, Any]] = []
        skipped: list[str] = []
        for candidate in candidates:
            file, reason = self._command_file(candidate, download_id)
            if file is not None:
                files.append(file)
            elif reason:
                skipped.append(reason)

        if not files:
            detail = "; ".join(skipped[:3])
            raise ArrManualImportError(
                f"No importable files were found: {detail}"
                if detail
                else f"{self.instance_name} did not provide importable files."
            )

        if skipped:
            logger.info(
                "Skipping %d file(s) of download %s: %s",
                len(skipped),
                download_id,
                "; ".join(skipped[:3]),
                extra={"download_id": download_id},
            )
        await self.execute_command(
            {"name": "ManualImport", "importMode": "auto", "files": files}
        )
        return len(files)


def create_clients(instances: Sequence[InstanceConfig]) -> list[ArrQueueClient]:
    """Create one client per enabled instance."""
    return [ArrQueueClient(instance) for instance in instances if instance.enabled]
