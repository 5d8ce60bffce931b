from stagedb.config import get_settings, reset_settings
from stagedb.dispatcher import Dispatcher


def test_defaults():
    s = get_settings()
    assert s.max_iterations == 1000
    assert s.trace_level == "minimal"
    assert s.detailed_errors is True


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("STAGEDB_MAX_ITERATIONS", "25")
    monkeypatch.setenv("STAGEDB_DETAILED_ERRORS", "false")
    reset_settings()

    d = Dispatcher()
    assert d.max_iterations == 25
    assert d.detailed_errors is False


def test_settings_are_cached():
    assert get_settings() is get_settings()
