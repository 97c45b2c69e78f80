from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List

import httpx

from ..config import (
    DEFAULT_ACCEPTED_STATUS_CODES,
    DEFAULT_METADATA_URL,
    DEFAULT_REQUEST_TIMEOUT,
    RATE_LIMITED_STATUS,
)
from ..models import CoverageArea, ImageryProvider, TileSourceDescriptor, parse_bbox

logger = logging.getLogger(__name__)


class TileSourceError(Exception):
    """Base class for failures while preparing tile addresses."""


class MetadataError(TileSourceError):
    """Raised when the metadata service rejects a request or returns an unusable payload."""

    def __init__(self, message: str, *, body: str = "", status_code: int | None = None) -> None:
        super().__init__(message)
        self.body = body
        self.status_code = status_code


class TransportError(TileSourceError):
    """Raised when the metadata service cannot be reached."""


class MetadataFetcher:
    """Client for the imagery metadata REST endpoints."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_METADATA_URL,
        accepted_status_codes: Iterable[int] = DEFAULT_ACCEPTED_STATUS_CODES,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.accepted_status_codes = frozenset(accepted_status_codes)
        self.timeout = httpx.Timeout(timeout)

    async def fetch(self, imagery_set: str) -> TileSourceDescriptor:
        """Fetch the tiling scheme for ``imagery_set``.

        Raises:
            MetadataError: If the response status is not accepted or the payload
                lacks a resource.
            TransportError: If the request could not be completed.
        """

        url = f"{self.base_url}/{imagery_set}"
        params = {"key": self.api_key, "include": "ImageryProviders", "uriScheme": "https"}
        resource = await self._request_resource(url, params)
        return descriptor_from_resource(resource)

    async def fetch_point(
        self, imagery_set: str, lat: float, lng: float, zoom: int
    ) -> Dict[str, Any]:
        """Fetch the imagery metadata resource describing a single location."""

        url = f"{self.base_url}/{imagery_set}/{lat},{lng}"
        params = {"zl": str(zoom), "key": self.api_key, "uriScheme": "https"}
        return await self._request_resource(url, params)

    async def _request_resource(self, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params=params)
        except httpx.RequestError as exc:
            raise TransportError(f"Imagery metadata request failed: {exc}") from exc

        body = response.text
        try:
            payload = response.json()
        except ValueError as exc:
            raise MetadataError(
                f"Imagery metadata response is not JSON (HTTP {response.status_code})",
                body=body,
                status_code=response.status_code,
            ) from exc

        status_code = response.status_code
        if isinstance(payload, dict) and "statusCode" in payload:
            status_code = payload["statusCode"]

        if status_code not in self.accepted_status_codes:
            raise MetadataError(
                f"Imagery metadata error (status {status_code}):\n{body}",
                body=body,
                status_code=status_code,
            )
        if status_code == RATE_LIMITED_STATUS:
            logger.warning("Imagery metadata request was rate limited; using the returned metadata.")

        return _first_resource(payload, body)


def _first_resource(payload: Any, body: str) -> Dict[str, Any]:
    try:
        resource = payload["resourceSets"][0]["resources"][0]
    except (KeyError, IndexError, TypeError) as exc:
        raise MetadataError("Imagery metadata response has no resources", body=body) from exc
    if not isinstance(resource, dict):
        raise MetadataError("Imagery metadata resource is not an object", body=body)
    return resource


def descriptor_from_resource(resource: Dict[str, Any]) -> TileSourceDescriptor:
    url_template = resource.get("imageUrl")
    if not isinstance(url_template, str) or not url_template:
        raise MetadataError("Imagery metadata resource has no imageUrl", body=json.dumps(resource))

    subdomains = tuple(str(value) for value in resource.get("imageUrlSubdomains") or ())
    if not subdomains:
        raise MetadataError(
            "Imagery metadata resource has no imageUrlSubdomains", body=json.dumps(resource)
        )

    providers: List[ImageryProvider] = []
    for entry in resource.get("imageryProviders") or ():
        try:
            areas = tuple(
                CoverageArea(
                    bbox=parse_bbox(area["bbox"]),
                    zoom_min=area.get("zoomMin"),
                    zoom_max=area.get("zoomMax"),
                )
                for area in entry.get("coverageAreas") or ()
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise MetadataError(
                f"Invalid coverage area in imagery metadata: {exc}", body=json.dumps(resource)
            ) from exc
        providers.append(
            ImageryProvider(attribution=str(entry.get("attribution", "")), coverage_areas=areas)
        )

    return TileSourceDescriptor(
        url_template=url_template,
        subdomains=subdomains,
        imagery_providers=tuple(providers),
    )
