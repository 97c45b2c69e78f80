from app.models import BoundingBox
from app.services.attribution import AttributionSynchronizer, compute_attributions, sync

from conftest import RecordingMap

EUROPE = BoundingBox(south=45.0, west=5.0, north=50.0, east=10.0)
SEATTLE = BoundingBox(south=47.5, west=-122.5, north=47.7, east=-122.2)


def test_global_providers_always_apply(descriptor):
    attributions = compute_attributions(descriptor, BoundingBox(south=-60, west=100, north=-50, east=110))

    assert attributions == {"© Microsoft"}


def test_coverage_area_intersection(descriptor):
    assert compute_attributions(descriptor, EUROPE) == {"© Microsoft", "© Europe Aerials"}


def test_coverage_zoom_range_applies_when_zoom_known(descriptor):
    assert "© City Survey" not in compute_attributions(descriptor, SEATTLE, zoom=8)
    assert "© City Survey" in compute_attributions(descriptor, SEATTLE, zoom=15)
    assert "© City Survey" in compute_attributions(descriptor, SEATTLE)


def test_sync_only_issues_differences():
    host = RecordingMap()

    sync(frozenset({"a", "b"}), frozenset({"b", "c"}), host)

    assert host.added == ["c"]
    assert host.removed == ["a"]


def test_repeated_update_is_idempotent(descriptor):
    host = RecordingMap()
    synchronizer = AttributionSynchronizer()

    synchronizer.update(descriptor, EUROPE, 6, host)
    calls_after_first = (list(host.added), list(host.removed))
    synchronizer.update(descriptor, EUROPE, 6, host)

    assert (host.added, host.removed) == calls_after_first
    assert sorted(host.added) == ["© Europe Aerials", "© Microsoft"]


def test_moving_viewport_swaps_attributions(descriptor):
    host = RecordingMap()
    synchronizer = AttributionSynchronizer()

    synchronizer.update(descriptor, EUROPE, 14, host)
    synchronizer.update(descriptor, SEATTLE, 14, host)

    assert host.added == ["© Europe Aerials", "© Microsoft", "© City Survey"]
    assert host.removed == ["© Europe Aerials"]


def test_hide_and_show_keep_current_set(descriptor):
    host = RecordingMap()
    synchronizer = AttributionSynchronizer()
    synchronizer.update(descriptor, EUROPE)

    synchronizer.show(host)
    synchronizer.hide(host)

    assert sorted(host.added) == sorted(host.removed) == ["© Europe Aerials", "© Microsoft"]
    assert synchronizer.current == {"© Microsoft", "© Europe Aerials"}


def test_viewport_across_antimeridian_matches_both_sides():
    pacific = BoundingBox(south=-20.0, west=170.0, north=10.0, east=-170.0)
    east_of_line = BoundingBox(south=-10.0, west=-175.0, north=0.0, east=-172.0)
    west_of_line = BoundingBox(south=-10.0, west=172.0, north=0.0, east=175.0)
    elsewhere = BoundingBox(south=-10.0, west=0.0, north=0.0, east=10.0)

    assert pacific.intersects(east_of_line)
    assert east_of_line.intersects(pacific)
    assert pacific.intersects(west_of_line)
    assert not pacific.intersects(elsewhere)
    assert pacific.center == (-5.0, 180.0)


def test_antimeridian_viewport_picks_up_global_coverage(descriptor):
    pacific = BoundingBox(south=-20.0, west=170.0, north=10.0, east=-170.0)

    assert compute_attributions(descriptor, pacific) == {"© Microsoft"}
