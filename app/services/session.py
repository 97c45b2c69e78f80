from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, Protocol, Tuple

from ..config import TileSourceOptions
from ..models import BoundingBox, SessionState, TileCoordinate, TileSourceDescriptor
from .attribution import AttributionSynchronizer
from .metadata import MetadataFetcher, TileSourceError, TransportError
from .tiles import build_tile_url

logger = logging.getLogger(__name__)

OnReady = Callable[[str], Any]
OnError = Callable[[BaseException], Any]


class PreconditionError(TileSourceError):
    """Raised when an operation is called without the inputs it needs."""


class MapView(Protocol):
    """The parts of a host map viewer the session talks to."""

    def get_bounds(self) -> BoundingBox: ...

    def get_zoom(self) -> int: ...

    def add_attribution(self, text: str) -> None: ...

    def remove_attribution(self, text: str) -> None: ...


class TileSourceSession:
    """Gate tile URL construction behind a single metadata bootstrap.

    All methods must be called from the thread running the event loop. Tile
    requests that arrive before the metadata is available are queued and
    resolved in arrival order once the bootstrap settles.
    """

    def __init__(
        self,
        options: TileSourceOptions,
        *,
        fetcher: MetadataFetcher | None = None,
    ) -> None:
        self.options = options
        self._fetcher = fetcher or MetadataFetcher(
            options.api_key,
            base_url=options.metadata_url,
            accepted_status_codes=options.accepted_status_codes,
            timeout=options.request_timeout,
        )
        self._state = SessionState.UNINITIALIZED
        self._descriptor: TileSourceDescriptor | None = None
        self._error: BaseException | None = None
        self._pending: Deque[Tuple[TileCoordinate, OnReady, OnError]] = deque()
        self._bootstrap_task: asyncio.Task | None = None
        self._attributions = AttributionSynchronizer()
        self._map: MapView | None = None

        if options.style and not options.supports_style:
            logger.warning(
                "Style %r requested for imagery set %s, which does not support dynamic styling.",
                options.style,
                options.imagery_set.value,
            )

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def descriptor(self) -> TileSourceDescriptor | None:
        return self._descriptor

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def attributions(self) -> frozenset[str]:
        return self._attributions.current

    def request_tile_url(
        self, coordinate: TileCoordinate, on_ready: OnReady, on_error: OnError
    ) -> None:
        if self._state is SessionState.READY:
            on_ready(self._build(coordinate))
            return
        if self._state is SessionState.FAILED:
            on_error(self._error)
            return
        if self._state is SessionState.UNINITIALIZED:
            self._start_bootstrap()
        self._pending.append((coordinate, on_ready, on_error))

    async def tile_url(self, coordinate: TileCoordinate) -> str:
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()

        def resolve(url: str) -> None:
            if not future.done():
                future.set_result(url)

        def reject(exc: BaseException) -> None:
            if not future.done():
                future.set_exception(exc)

        self.request_tile_url(coordinate, resolve, reject)
        return await future

    def prefetch(self) -> asyncio.Future:
        """Start the metadata bootstrap without waiting for a tile request.

        The returned future is shielded: cancelling it, for example through
        ``asyncio.wait_for``, leaves the bootstrap running.
        """

        if self._bootstrap_task is None:
            self._start_bootstrap()
        return asyncio.shield(self._bootstrap_task)

    def attach(self, map_view: MapView) -> None:
        if self._map is not None:
            self.detach()
        self._map = map_view
        self._attributions.show(map_view)
        if self._descriptor is not None:
            self._refresh_attributions()

    def detach(self) -> None:
        if self._map is None:
            return
        self._attributions.hide(self._map)
        self._map = None

    def on_viewport_settled(self) -> None:
        if self._descriptor is None or self._map is None:
            return
        self._refresh_attributions()

    async def get_point_metadata(
        self, location: Tuple[float, float] | None = None, zoom: int | None = None
    ) -> Dict[str, Any]:
        """Fetch informational metadata for a single point.

        Falls back to the attached map's centre and zoom when arguments are
        omitted. Does not affect the session state.
        """

        if location is None:
            if self._map is None:
                raise PreconditionError("A location is required when no map is attached.")
            location = self._map.get_bounds().center
        if zoom is None:
            if self._map is None:
                raise PreconditionError("A zoom level is required when no map is attached.")
            zoom = self._map.get_zoom()
        lat, lng = location
        return await self._fetcher.fetch_point(self.options.imagery_set.value, lat, lng, zoom)

    def _build(self, coordinate: TileCoordinate) -> str:
        return build_tile_url(
            self._descriptor,
            coordinate,
            culture=self.options.culture,
            style=self.options.style,
        )

    def _start_bootstrap(self) -> None:
        # raises RuntimeError outside a running loop, before any state changes
        task = asyncio.get_running_loop().create_task(self._bootstrap())
        task.add_done_callback(self._on_bootstrap_done)
        self._bootstrap_task = task
        self._state = SessionState.BOOTSTRAPPING

    def _on_bootstrap_done(self, task: asyncio.Task) -> None:
        if task.cancelled() and self._state is SessionState.BOOTSTRAPPING:
            logger.warning("Imagery metadata bootstrap was cancelled")
            self._fail(TransportError("Imagery metadata bootstrap was cancelled"))

    async def _bootstrap(self) -> None:
        logger.info("Fetching imagery metadata for %s", self.options.imagery_set.value)
        try:
            descriptor = await self._fetcher.fetch(self.options.imagery_set.value)
        except TileSourceError as exc:
            logger.error("Imagery metadata bootstrap failed: %s", exc)
            self._fail(exc)
            return
        except Exception as exc:
            logger.exception("Unexpected error during imagery metadata bootstrap")
            self._fail(exc)
            return

        self._descriptor = descriptor
        self._state = SessionState.READY
        logger.info(
            "Imagery metadata ready: %d subdomains, %d imagery providers",
            len(descriptor.subdomains),
            len(descriptor.imagery_providers),
        )
        try:
            self._refresh_attributions()
        except Exception:
            logger.exception("Failed to update imagery attributions")

        while self._pending:
            coordinate, on_ready, _ = self._pending.popleft()
            try:
                on_ready(self._build(coordinate))
            except Exception:
                logger.exception("Tile continuation failed for %s", coordinate)

    def _fail(self, exc: BaseException) -> None:
        self._error = exc
        self._state = SessionState.FAILED
        while self._pending:
            coordinate, _, on_error = self._pending.popleft()
            try:
                on_error(exc)
            except Exception:
                logger.exception("Tile error continuation failed for %s", coordinate)

    def _refresh_attributions(self) -> None:
        if self._map is None:
            self._attributions.update(self._descriptor, BoundingBox.WORLD)
            return
        self._attributions.update(
            self._descriptor, self._map.get_bounds(), self._map.get_zoom(), self._map
        )
