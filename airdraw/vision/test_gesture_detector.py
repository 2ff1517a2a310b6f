import pytest

from airdraw.vision.frame_data import INDEX_FINGER_TIP, NUM_LANDMARKS, THUMB_TIP, Landmark, PinchState
from airdraw.vision.gesture_detector import PinchClassifier


def hand(index=(0.5, 0.5), thumb=(0.5, 0.5)):
    points = [Landmark(0.5, 0.5) for _ in range(NUM_LANDMARKS)]
    points[INDEX_FINGER_TIP] = Landmark(*index)
    points[THUMB_TIP] = Landmark(*thumb)
    return points


def test_close_tips_pinch():
    result = PinchClassifier(0.12).classify(hand(index=(0.50, 0.50), thumb=(0.53, 0.54)))
    assert result.distance == pytest.approx(0.05)
    assert result.state is PinchState.ACTIVE
    assert result.is_pinching


def test_distance_at_threshold_is_idle():
    result = PinchClassifier(0.5).classify(hand(index=(0.0, 0.25), thumb=(0.5, 0.25)))
    assert result.distance == pytest.approx(0.5)
    assert result.state is PinchState.IDLE


def test_far_tips_idle():
    result = PinchClassifier().classify(hand(index=(0.2, 0.2), thumb=(0.6, 0.7)))
    assert result.state is PinchState.IDLE
    assert not result.is_pinching


def test_depth_is_ignored():
    points = hand(index=(0.5, 0.5), thumb=(0.52, 0.5))
    points[THUMB_TIP] = Landmark(0.52, 0.5, z=0.9)
    assert PinchClassifier().classify(points).is_pinching


def test_reports_tips():
    result = PinchClassifier().classify(hand(index=(0.1, 0.2), thumb=(0.3, 0.4)))
    assert result.index_tip == Landmark(0.1, 0.2)
    assert result.thumb_tip == Landmark(0.3, 0.4)


def test_wrong_landmark_count_rejected():
    with pytest.raises(ValueError):
        PinchClassifier().classify(hand()[:20])


def test_threshold_must_be_positive():
    with pytest.raises(ValueError):
        PinchClassifier(0.0)
