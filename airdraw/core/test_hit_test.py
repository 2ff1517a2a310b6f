from airdraw.core.hit_test import ACTION_ANALYZE, ACTION_CLEAR, ElementMarkers, HitTestRouter, RouterActions
from airdraw.vision.frame_data import Point


class FakeService:
    def __init__(self, markers=None):
        self.markers = markers
        self.queries = []

    def element_at(self, point):
        self.queries.append(point)
        return self.markers


class Recorder:
    def __init__(self):
        self.calls = []

    def actions(self):
        return RouterActions(
            select_color=lambda c: self.calls.append(("color", c)),
            select_size=lambda s: self.calls.append(("size", s)),
            clear=lambda: self.calls.append(("clear",)),
            trigger_enhance=lambda: self.calls.append(("enhance",)),
        )


def router(markers=None, repeat_actions=True):
    rec = Recorder()
    service = FakeService(markers)
    return HitTestRouter(service, rec.actions(), repeat_actions=repeat_actions), service, rec


def test_color_marker_selects_color():
    r, service, rec = router(ElementMarkers(color="#EF4444"))
    assert r.route(Point(10, 20)) == ElementMarkers(color="#EF4444")
    assert service.queries == [Point(10, 20)]
    assert rec.calls == [("color", "#EF4444")]


def test_size_and_clear_markers():
    r, service, rec = router(ElementMarkers(size=16))
    r.route(Point(0, 0))
    service.markers = ElementMarkers(action=ACTION_CLEAR)
    r.route(Point(0, 0))
    assert rec.calls == [("size", 16), ("clear",)]


def test_enhance_fires_when_enabled():
    r, _, rec = router(ElementMarkers(action=ACTION_ANALYZE))
    r.route(Point(0, 0))
    assert rec.calls == [("enhance",)]


def test_disabled_enhance_ignored():
    r, _, rec = router(ElementMarkers(action=ACTION_ANALYZE, disabled=True))
    r.route(Point(0, 0))
    assert rec.calls == []


def test_nothing_under_cursor():
    r, _, rec = router(None)
    assert r.route(Point(0, 0)) is None
    assert rec.calls == []


def test_unknown_action_ignored():
    r, _, rec = router(ElementMarkers(action="rotate"))
    r.route(Point(0, 0))
    assert rec.calls == []


def test_repeat_fire_every_pinching_frame():
    r, _, rec = router(ElementMarkers(color="#FFFFFF"))
    for _ in range(3):
        r.route(Point(0, 0))
    assert rec.calls == [("color", "#FFFFFF")] * 3


def test_enhance_trigger_not_debounced():
    r, _, rec = router(ElementMarkers(action=ACTION_ANALYZE), repeat_actions=False)
    for _ in range(3):
        r.route(Point(0, 0))
    assert rec.calls == [("enhance",)] * 3


def test_single_fire_per_held_pinch():
    r, service, rec = router(ElementMarkers(action=ACTION_CLEAR), repeat_actions=False)
    r.route(Point(0, 0))
    r.route(Point(1, 0))
    assert rec.calls == [("clear",)]

    r.release()
    r.route(Point(2, 0))
    assert rec.calls == [("clear",), ("clear",)]


def test_single_fire_rearms_after_leaving_element():
    r, service, rec = router(ElementMarkers(size=4), repeat_actions=False)
    r.route(Point(0, 0))
    service.markers = None
    r.route(Point(50, 0))
    service.markers = ElementMarkers(size=4)
    r.route(Point(0, 0))
    assert rec.calls == [("size", 4), ("size", 4)]
