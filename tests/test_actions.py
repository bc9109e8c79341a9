import enum
import sys
import types

import pytest

from sound_trigger.actions import KeyPressAction


class DummyKB:
    def __init__(self):
        self.events = []

    def press(self, k):
        self.events.append(("press", k))

    def release(self, k):
        self.events.append(("release", k))


def _dummy_pynput(monkeypatch):
    class Key(enum.Enum):
        space = "space"
        enter = "enter"

    keyboard = types.SimpleNamespace(Key=Key, Controller=DummyKB)
    monkeypatch.setitem(sys.modules, "pynput", types.SimpleNamespace(keyboard=keyboard))
    monkeypatch.setitem(sys.modules, "pynput.keyboard", keyboard)
    return Key


def test_character_key_tapped():
    kb = DummyKB()
    action = KeyPressAction("n", kb=kb)
    action()
    action()
    assert kb.events == [("press", "n"), ("release", "n")] * 2


def test_named_key_resolved(monkeypatch):
    Key = _dummy_pynput(monkeypatch)
    kb = DummyKB()
    KeyPressAction("Space", kb=kb)()
    assert kb.events == [("press", Key.space), ("release", Key.space)]


def test_default_controller(monkeypatch):
    _dummy_pynput(monkeypatch)
    action = KeyPressAction("x")
    assert isinstance(action.kb, DummyKB)


def test_unknown_key_name(monkeypatch):
    _dummy_pynput(monkeypatch)
    with pytest.raises(ValueError):
        KeyPressAction("nosuchkey", kb=DummyKB())


def test_empty_key():
    with pytest.raises(ValueError):
        KeyPressAction("", kb=DummyKB())
