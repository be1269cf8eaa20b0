"""Demo data sanity checks."""

from simroom import storage
from simroom.chat import load_session
from simroom.demo import create_demo_data
from simroom.models import Chat
from simroom.paths import path_view


def test_demo_data_is_playable(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-demo")
    create_demo_data()

    assert len(storage.list_simulations()) == 2
    assert storage.get_global_prompts() is not None
    sim = storage.list_simulations()[0]
    session = load_session(storage.create_chat(Chat(simulation_id=sim.id)).id)
    assert session.mood is not None

    (path,) = storage.list_paths()
    assert path.is_public
    assert [s.status for s in path_view(path, "demo").steps] == ["available", "locked"]


def test_demo_data_replaces_existing_rows():
    create_demo_data()
    create_demo_data()
    assert len(storage.list_characters()) == 2
