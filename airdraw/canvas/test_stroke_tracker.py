from airdraw.canvas.stroke import Segment, StrokeTracker
from airdraw.canvas.surface import DrawingSurface
from airdraw.vision.frame_data import Point


def tracker():
    return StrokeTracker(DrawingSurface(100, 100))


def test_first_point_draws_nothing():
    t = tracker()
    assert t.extend(Point(10, 10), "#FFFFFF", 8) is None
    assert t.in_stroke
    assert t.surface.segment_count == 0


def test_connected_segments():
    t = tracker()
    points = [Point(10, 10), Point(20, 15), Point(30, 30)]
    segments = [t.extend(p, "#22D3EE", 4) for p in points]

    assert segments[0] is None
    assert segments[1] == Segment(Point(10, 10), Point(20, 15), "#22D3EE", 4)
    assert segments[2].start == segments[1].end
    assert t.current_stroke.segment_count == 2
    assert t.surface.segment_count == 2


def test_break_starts_new_stroke():
    t = tracker()
    t.extend(Point(10, 10), "#FFFFFF", 8)
    t.extend(Point(20, 20), "#FFFFFF", 8)
    t.break_stroke()

    assert not t.in_stroke
    assert t.extend(Point(50, 50), "#FFFFFF", 8) is None
    assert [s.segment_count for s in t.strokes] == [1]


def test_break_without_stroke_is_noop():
    t = tracker()
    t.break_stroke()
    assert t.strokes == []


def test_style_is_taken_per_segment():
    t = tracker()
    t.extend(Point(10, 10), "#FFFFFF", 4)
    first = t.extend(Point(20, 10), "#FFFFFF", 4)
    second = t.extend(Point(30, 10), "#EF4444", 16)
    assert (first.color, first.thickness) == ("#FFFFFF", 4)
    assert (second.color, second.thickness) == ("#EF4444", 16)


def test_clear_resets_continuity_by_default():
    t = tracker()
    t.extend(Point(10, 10), "#FFFFFF", 8)
    t.extend(Point(20, 20), "#FFFFFF", 8)
    t.clear_surface()

    assert t.surface.is_blank()
    assert not t.in_stroke
    assert t.extend(Point(30, 30), "#FFFFFF", 8) is None


def test_clear_can_keep_continuity():
    t = tracker()
    t.extend(Point(10, 10), "#FFFFFF", 8)
    t.clear_surface(reset_stroke=False)

    assert t.surface.is_blank()
    segment = t.extend(Point(40, 40), "#FFFFFF", 8)
    assert segment.start == Point(10, 10)


def test_history_is_bounded():
    t = StrokeTracker(DrawingSurface(10, 10), history_limit=3)
    for i in range(5):
        t.extend(Point(i, i), "#FFFFFF", 1)
        t.break_stroke()
    assert len(t.strokes) == 3
    assert t.strokes[0].points == [Point(2, 2)]
