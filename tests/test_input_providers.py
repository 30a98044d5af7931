from dataclasses import fields
from queue import Queue

import pytest

from winter_arcade.events import Action, InputEvent, InputKind
from winter_arcade.input_providers.gestures import (
    DEFAULT_GESTURE_ACTIONS,
    FaceGestures,
    GestureLatch,
    blink_amount,
    mouth_openness,
    smile_amount,
)
from winter_arcade.input_providers.keyboard import KeyboardProvider


def _drain(q: Queue):
    items = []
    while not q.empty():
        items.append(q.get_nowait())
    return items


class TestKeyboardProvider:
    def test_no_pyxel_no_events(self):
        q: Queue = Queue()
        KeyboardProvider().poll(None, q)
        assert q.empty()

    def test_space_press_and_release(self, fake_px):
        provider = KeyboardProvider()
        q: Queue = Queue()

        fake_px.pressed.add(fake_px.KEY_SPACE)
        provider.poll(fake_px, q)
        (event,) = _drain(q)
        assert event.action is Action.COMMIT
        assert event.kind is InputKind.PRESS
        assert not event.is_repeat
        assert event.note == "keyboard"

        fake_px.next_frame()
        fake_px.released.add(fake_px.KEY_SPACE)
        provider.poll(fake_px, q)
        (event,) = _drain(q)
        assert event.action is Action.COMMIT
        assert event.is_release

    def test_release_without_press_is_dropped(self, fake_px):
        provider = KeyboardProvider()
        q: Queue = Queue()
        fake_px.released.add(fake_px.KEY_SPACE)
        provider.poll(fake_px, q)
        assert q.empty()

    def test_up_arrow_drives_aim_and_pitch(self, fake_px):
        provider = KeyboardProvider()
        q: Queue = Queue()
        fake_px.pressed.add(fake_px.KEY_UP)
        provider.poll(fake_px, q)
        assert [e.action for e in _drain(q)] == [Action.AIM_UP, Action.PITCH_UP]

    def test_held_arrow_repeats(self, fake_px):
        provider = KeyboardProvider()
        q: Queue = Queue()
        fake_px.pressed.add(fake_px.KEY_DOWN)
        provider.poll(fake_px, q)
        _drain(q)

        fake_px.next_frame()
        fake_px.repeating.add(fake_px.KEY_DOWN)
        provider.poll(fake_px, q)
        events = _drain(q)
        assert [e.action for e in events] == [Action.AIM_DOWN, Action.PITCH_DOWN]
        assert all(e.is_repeat for e in events)

    def test_space_does_not_repeat(self, fake_px):
        provider = KeyboardProvider()
        q: Queue = Queue()
        fake_px.repeating.add(fake_px.KEY_SPACE)
        provider.poll(fake_px, q)
        assert q.empty()

    def test_custom_note(self, fake_px):
        provider = KeyboardProvider(note="p2")
        q: Queue = Queue()
        fake_px.pressed.add(fake_px.KEY_M)
        provider.poll(fake_px, q)
        (event,) = _drain(q)
        assert event.action is Action.MUTE
        assert event.note == "p2"


class TestGestureLatch:
    def test_hysteresis_thresholds(self):
        latch = GestureLatch.with_hysteresis(0.5, 0.05)
        assert latch.on == 0.5
        assert latch.off == pytest.approx(0.45)

    def test_press_then_release_once(self):
        latch = GestureLatch.with_hysteresis(0.5, 0.05)
        assert latch.update(0.3) is None
        assert latch.update(0.6) is InputKind.PRESS
        assert latch.update(0.9) is None
        # OFF 閾値より上ならまだ押しっぱなし
        assert latch.update(0.47) is None
        assert latch.update(0.2) is InputKind.RELEASE
        assert latch.update(0.2) is None

    def test_missing_value_keeps_state(self):
        latch = GestureLatch(on=0.5, off=0.4)
        latch.update(0.8)
        assert latch.update(None) is None
        assert latch.active

    def test_drop_releases_only_when_active(self):
        latch = GestureLatch(on=0.5, off=0.4)
        assert latch.drop() is None
        latch.update(0.8)
        assert latch.drop() is InputKind.RELEASE
        assert not latch.active


class TestFaceGestures:
    def test_default_mapping(self):
        assert DEFAULT_GESTURE_ACTIONS == {
            "mouth": Action.COMMIT,
            "smile": Action.BRUSH,
            "blink": Action.PITCH_UP,
        }

    def test_measures_fall_back_to_alternate_blendshapes(self):
        assert mouth_openness({"jawopen": 0.7}) == 0.7
        assert mouth_openness({"mouthclose": 0.25}) == 0.75
        assert mouth_openness({}) is None
        assert smile_amount({"mouthsmileleft": 0.2, "mouthsmileright": 0.4}) == pytest.approx(0.3)
        assert smile_amount({"mouthcornerpullleft": 0.6, "mouthcornerpullright": 0.8}) == pytest.approx(0.7)
        assert blink_amount({"eyeblinkleft": 0.2, "eyeblinkright": 0.2, "eyesquintleft": 0.6, "eyesquintright": 0.6}) == pytest.approx(0.6)
        assert blink_amount({"eyeblinkleft": 0.9}) is None

    def test_default_thresholds(self):
        gestures = FaceGestures()
        assert gestures.latches["mouth"].on == 0.3
        assert gestures.latches["smile"].on == 0.5
        assert gestures.latches["blink"].on == 0.5

    def test_open_mouth_commits_until_face_is_lost(self):
        gestures = FaceGestures()
        events = gestures.events({"jawopen": 0.8, "mouthsmileleft": 0.1, "mouthsmileright": 0.1})
        assert [(e.action, e.kind) for e in events] == [(Action.COMMIT, InputKind.PRESS)]
        assert events[0].note == "face"

        events = gestures.events(None)
        assert [(e.action, e.kind) for e in events] == [(Action.COMMIT, InputKind.RELEASE)]

    def test_smile_and_blink(self):
        gestures = FaceGestures()
        shapes = {
            "jawopen": 0.0,
            "mouthsmileleft": 0.9,
            "mouthsmileright": 0.9,
            "eyeblinkleft": 0.8,
            "eyeblinkright": 0.8,
        }
        events = gestures.events(shapes)
        assert [(e.action, e.kind) for e in events] == [
            (Action.BRUSH, InputKind.PRESS),
            (Action.PITCH_UP, InputKind.PRESS),
        ]
        shapes.update(eyeblinkleft=0.0, eyeblinkright=0.0)
        events = gestures.events(shapes)
        assert [(e.action, e.kind) for e in events] == [(Action.PITCH_UP, InputKind.RELEASE)]

    def test_custom_mapping_skips_unmapped_gestures(self):
        gestures = FaceGestures(gesture_actions={"blink": Action.PITCH_DOWN})
        events = gestures.events({"jawopen": 0.9, "eyeblinkleft": 0.9, "eyeblinkright": 0.9})
        assert [(e.action, e.kind) for e in events] == [(Action.PITCH_DOWN, InputKind.PRESS)]


def test_input_event_carries_only_action_edge_and_source():
    assert [f.name for f in fields(InputEvent)] == ["action", "kind", "is_repeat", "note"]
