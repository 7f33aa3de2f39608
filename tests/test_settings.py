import pytest

from erlangkit.settings import Settings, load_settings


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    monkeypatch.delenv("ERLANGKIT_SIMULATION_SEED", raising=False)
    monkeypatch.delenv("ERLANGKIT_DEFAULT_CHANNEL", raising=False)
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


def test_defaults():
    assert load_settings() == Settings(simulation_seed=None, default_channel="voice")


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("ERLANGKIT_SIMULATION_SEED", "42")
    monkeypatch.setenv("ERLANGKIT_DEFAULT_CHANNEL", "Chat")
    s = load_settings()
    assert s.simulation_seed == 42
    assert s.default_channel == "chat"


def test_bad_seed_raises(monkeypatch):
    monkeypatch.setenv("ERLANGKIT_SIMULATION_SEED", "abc")
    with pytest.raises(RuntimeError, match="ERLANGKIT_SIMULATION_SEED"):
        load_settings()


def test_bad_channel_raises(monkeypatch):
    monkeypatch.setenv("ERLANGKIT_DEFAULT_CHANNEL", "fax")
    with pytest.raises(RuntimeError, match="ERLANGKIT_DEFAULT_CHANNEL"):
        load_settings()
