"""Server entry point."""

from kc_api import __main__ as entry
from kc_api.config import Settings


def test_main_serves_the_app(monkeypatch):
    calls = []
    monkeypatch.setattr(entry.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setattr(entry, "settings", Settings(host="127.0.0.1", port=9001, log_level="WARNING"))

    entry.main()

    assert calls == [("kc_api.main:app", {"host": "127.0.0.1", "port": 9001, "log_level": "warning"})]


def test_port_falls_back_when_not_a_number(monkeypatch):
    from kc_api.config import _env_int

    monkeypatch.setenv("PORT", "http")
    assert _env_int("PORT", 8080) == 8080
    monkeypatch.setenv("PORT", "9000")
    assert _env_int("PORT", 8080) == 9000
