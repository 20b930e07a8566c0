"""Tests for the device hash naming the records file."""

import hashlib

from bar_tomato.utils import device_id


def test_hash_of_machine_id(monkeypatch):
    monkeypatch.setattr(device_id, "_read_machine_id", lambda: "machine-1")
    expected = hashlib.sha256(b"bar-tomato-machine-1").hexdigest()
    assert device_id.get_device_hash() == expected


def test_fallback_is_stable(monkeypatch):
    monkeypatch.setattr(device_id, "_read_machine_id", lambda: None)
    first = device_id.get_device_hash()
    assert first == device_id.get_device_hash()
    assert len(first) == 64
