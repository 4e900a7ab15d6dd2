import pytest

from pantry_api import db


def test_write_attempts_default_to_five(monkeypatch):
    monkeypatch.delenv("STORE_MAX_WRITE_ATTEMPTS", raising=False)

    assert db.read_max_write_attempts() == 5


def test_write_attempts_read_from_environment(monkeypatch):
    monkeypatch.setenv("STORE_MAX_WRITE_ATTEMPTS", "2")

    assert db.read_max_write_attempts() == 2


@pytest.mark.parametrize("raw", ["0", "-1", "many"])
def test_unusable_write_attempts_are_rejected(monkeypatch, raw):
    monkeypatch.setenv("STORE_MAX_WRITE_ATTEMPTS", raw)

    with pytest.raises(ValueError):
        db.read_max_write_attempts()
