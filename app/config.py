from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

BING_MAPS_KEY_ENV = "BING_MAPS_KEY"
BING_IMAGERY_SET_ENV = "BING_IMAGERY_SET"
BING_CULTURE_ENV = "BING_CULTURE"
BING_STYLE_ENV = "BING_STYLE"
IMAGERY_ACCEPT_RATE_LIMITED_ENV = "IMAGERY_ACCEPT_RATE_LIMITED"
IMAGERY_METADATA_URL_ENV = "IMAGERY_METADATA_URL"
IMAGERY_REQUEST_TIMEOUT_ENV = "IMAGERY_REQUEST_TIMEOUT"

DEFAULT_METADATA_URL = "https://dev.virtualearth.net/REST/v1/Imagery/Metadata"
DEFAULT_CULTURE = "en-US"
DEFAULT_REQUEST_TIMEOUT = 30.0

RATE_LIMITED_STATUS = 429
# The provider still returns usable metadata alongside a 429 throttling notice.
DEFAULT_ACCEPTED_STATUS_CODES = frozenset({200, RATE_LIMITED_STATUS})
STRICT_ACCEPTED_STATUS_CODES = frozenset({200})


class ImagerySet(str, Enum):
    """Imagery sets published by the metadata service."""

    AERIAL = "Aerial"
    AERIAL_WITH_LABELS = "AerialWithLabels"
    AERIAL_WITH_LABELS_ON_DEMAND = "AerialWithLabelsOnDemand"
    ROAD = "Road"
    ROAD_ON_DEMAND = "RoadOnDemand"
    CANVAS_LIGHT = "CanvasLight"
    CANVAS_DARK = "CanvasDark"
    CANVAS_GRAY = "CanvasGray"
    ORDNANCE_SURVEY = "OrdnanceSurvey"


# Only the on-demand sets honour the ``st=`` style parameter.
DYNAMIC_IMAGERY_SETS = frozenset(
    {ImagerySet.AERIAL_WITH_LABELS_ON_DEMAND, ImagerySet.ROAD_ON_DEMAND}
)

DEFAULT_IMAGERY_SET = ImagerySet.AERIAL


def _api_key() -> str:
    return os.getenv(BING_MAPS_KEY_ENV, "").strip()


def _imagery_set() -> ImagerySet:
    raw_value = os.getenv(BING_IMAGERY_SET_ENV, "").strip()
    if not raw_value:
        return DEFAULT_IMAGERY_SET
    try:
        return ImagerySet(raw_value)
    except ValueError:
        logger.warning(
            "Unknown imagery set %r in %s; using %s.",
            raw_value,
            BING_IMAGERY_SET_ENV,
            DEFAULT_IMAGERY_SET.value,
        )
        return DEFAULT_IMAGERY_SET


def _accept_rate_limited() -> bool:
    raw_value = os.getenv(IMAGERY_ACCEPT_RATE_LIMITED_ENV, "").strip().lower()
    if not raw_value:
        return True
    return raw_value not in {"0", "false", "no", "off"}


def _request_timeout_seconds() -> float:
    raw_value = os.getenv(IMAGERY_REQUEST_TIMEOUT_ENV, "").strip()
    if not raw_value:
        return DEFAULT_REQUEST_TIMEOUT
    try:
        timeout = float(raw_value)
    except ValueError:
        logger.warning("Ignoring invalid %s value %r.", IMAGERY_REQUEST_TIMEOUT_ENV, raw_value)
        return DEFAULT_REQUEST_TIMEOUT
    return timeout if timeout > 0 else DEFAULT_REQUEST_TIMEOUT


@dataclass(frozen=True)
class TileSourceOptions:
    api_key: str = ""
    imagery_set: ImagerySet = DEFAULT_IMAGERY_SET
    culture: str = DEFAULT_CULTURE
    style: str | None = None
    accept_rate_limited: bool = True
    metadata_url: str = DEFAULT_METADATA_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @property
    def accepted_status_codes(self) -> frozenset[int]:
        if self.accept_rate_limited:
            return DEFAULT_ACCEPTED_STATUS_CODES
        return STRICT_ACCEPTED_STATUS_CODES

    @property
    def supports_style(self) -> bool:
        return self.imagery_set in DYNAMIC_IMAGERY_SETS

    @classmethod
    def from_env(cls) -> TileSourceOptions:
        return cls(
            api_key=_api_key(),
            imagery_set=_imagery_set(),
            culture=os.getenv(BING_CULTURE_ENV, "").strip() or DEFAULT_CULTURE,
            style=os.getenv(BING_STYLE_ENV, "").strip() or None,
            accept_rate_limited=_accept_rate_limited(),
            metadata_url=os.getenv(IMAGERY_METADATA_URL_ENV, "").strip().rstrip("/")
            or DEFAULT_METADATA_URL,
            request_timeout=_request_timeout_seconds(),
        )
