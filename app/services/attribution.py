"""Keep a map's attribution text in step with the imagery actually on screen."""

from __future__ import annotations

from typing import AbstractSet, FrozenSet, Protocol

from ..models import BoundingBox, TileSourceDescriptor


class AttributionHost(Protocol):
    def add_attribution(self, text: str) -> None: ...

    def remove_attribution(self, text: str) -> None: ...


def compute_attributions(
    descriptor: TileSourceDescriptor, viewport: BoundingBox, zoom: int | None = None
) -> FrozenSet[str]:
    """Return the attribution strings of every provider covering ``viewport``.

    Providers without coverage areas apply everywhere.
    """

    attributions = set()
    for provider in descriptor.imagery_providers:
        if not provider.coverage_areas or any(
            area.applies_to(viewport, zoom) for area in provider.coverage_areas
        ):
            attributions.add(provider.attribution)
    return frozenset(attributions)


def sync(previous: AbstractSet[str], new: AbstractSet[str], host: AttributionHost) -> None:
    for text in sorted(new - previous):
        host.add_attribution(text)
    for text in sorted(previous - new):
        host.remove_attribution(text)


class AttributionSynchronizer:
    """Tracks which attributions have been published for a tile source."""

    def __init__(self) -> None:
        self.current: FrozenSet[str] = frozenset()

    def update(
        self,
        descriptor: TileSourceDescriptor,
        viewport: BoundingBox,
        zoom: int | None = None,
        host: AttributionHost | None = None,
    ) -> FrozenSet[str]:
        new = compute_attributions(descriptor, viewport, zoom)
        if host is not None:
            sync(self.current, new, host)
        self.current = new
        return new

    def show(self, host: AttributionHost) -> None:
        sync(frozenset(), self.current, host)

    def hide(self, host: AttributionHost) -> None:
        sync(self.current, frozenset(), host)
