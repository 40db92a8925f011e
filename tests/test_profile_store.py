"""
Tests for ProfileStore: layouts, listing, loading, writing, import and seeding.
"""

import json
import logging
import os
from pathlib import Path

import pytest

from flashquest.exceptions import (
    ProfileFormatError,
    ProfileNotFoundError,
    ProfileWriteError,
)
from flashquest.models import Flashcard, Player, ProfileDocument, ProfileLayout
from flashquest.store import ProfileStore
from flashquest.store.profile_store import load_starter_deck


def _write(path: Path, payload) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def _touch(path: Path, mtime: float) -> None:
    os.utime(path, (mtime, mtime))


@pytest.fixture
def populated_dir(data_dir: Path) -> Path:
    """
    Build a data directory with one profile in each layout.

    - root player.json (legacy, level 2) and a bare-list flashcards.json
    - alice/ folder profile with a wrapped deck
    - saved.json profile document with two players
    """
    _write(
        data_dir / "player.json",
        {"id": "root", "name": "Rooty", "currentLevel": 2, "totalXp": 120},
    )
    _write(data_dir / "flashcards.json", [{"id": "r1", "question": "Q", "answer": "A"}])
    _write(
        data_dir / "alice" / "player.json",
        {"id": "alice", "name": "Alice", "currentLevel": 1, "totalXp": 40},
    )
    _write(
        data_dir / "alice" / "flashcards.json",
        {"flashcards": [{"id": "a1", "question": "Q", "answer": "A"}]},
    )
    _write(
        data_dir / "saved.json",
        {
            "players": [
                {"id": "p1", "name": "First", "level": 1},
                {"id": "p2", "name": "Second", "currentLevel": 5, "totalXp": 720},
            ],
            "flashcards": [],
            "activePlayerId": "p2",
        },
    )
    _touch(data_dir / "player.json", 1_000)
    _touch(data_dir / "alice" / "player.json", 3_000)
    _touch(data_dir / "saved.json", 2_000)
    return data_dir


# --- Listing ---


def test_list_profiles_missing_dir(store: ProfileStore):
    assert store.list_profiles() == []


def test_list_profiles_all_layouts_newest_first(populated_dir: Path):
    store = ProfileStore(populated_dir)
    summaries = store.list_profiles()

    assert [s.load_key for s in summaries] == ["alice", "saved.json", "default"]
    alice, saved, legacy = summaries
    assert alice.layout is ProfileLayout.FOLDER
    assert alice.path == "alice/player.json"
    assert alice.total_xp == 40
    assert saved.layout is ProfileLayout.DOCUMENT
    assert saved.display_name == "Second"
    assert saved.level == 5
    assert legacy.layout is ProfileLayout.LEGACY
    assert legacy.display_name == "Rooty"
    assert legacy.level == 2


def test_list_profiles_ignores_folders_without_player(populated_dir: Path):
    (populated_dir / "empty").mkdir()
    _write(populated_dir / "cards-only" / "flashcards.json", [])
    store = ProfileStore(populated_dir)
    assert "empty" not in [s.id for s in store.list_profiles()]
    assert "cards-only" not in [s.id for s in store.list_profiles()]


def test_list_profiles_keeps_unreadable_entries(data_dir: Path, caplog):
    broken = data_dir / "bob" / "player.json"
    broken.parent.mkdir(parents=True)
    broken.write_text("{oops", encoding="utf-8")
    (data_dir / "junk.json").write_text("[1, 2", encoding="utf-8")
    _write(data_dir / "carl" / "player.json", {"name": 42, "currentLevel": 2})
    _write(data_dir / "odd.json", {"players": True})
    _write(data_dir / "nameless.json", {"players": [{"name": ["x"]}]})

    with caplog.at_level(logging.WARNING):
        summaries = ProfileStore(data_dir).list_profiles()

    by_id = {s.id: s for s in summaries}
    assert by_id["bob"].display_name == "bob"
    assert by_id["bob"].level is None
    assert by_id["junk"].display_name == "junk"
    assert by_id["carl"].display_name == "carl"
    assert by_id["carl"].level == 2
    assert by_id["odd"].display_name == "odd"
    assert by_id["nameless"].display_name == "nameless"
    assert "Could not read" in caplog.text


def test_list_profiles_document_next_to_same_named_folder(populated_dir: Path):
    _write(
        populated_dir / "alice.json",
        {"players": [{"id": "doc-alice", "name": "Doc Alice"}]},
    )
    store = ProfileStore(populated_dir)

    keys = {s.layout: s.load_key for s in store.list_profiles() if s.id == "alice"}

    assert keys == {ProfileLayout.FOLDER: "alice", ProfileLayout.DOCUMENT: "alice.json"}
    assert store.load_profile(keys[ProfileLayout.DOCUMENT]).active_player().id == "doc-alice"
    assert store.load_profile(keys[ProfileLayout.FOLDER]).active_player().id == "alice"


@pytest.mark.parametrize("name", ["../outside", "../outside.json", "/tmp/elsewhere"])
def test_names_outside_data_dir_are_rejected(data_dir: Path, name):
    outside = data_dir.parent / "outside.json"
    _write(outside, {"players": []})
    store = ProfileStore(data_dir)

    with pytest.raises(ProfileNotFoundError, match="outside the data directory"):
        store.load_profile(name)
    with pytest.raises(ProfileNotFoundError, match="outside the data directory"):
        store.delete_profile(name)
    assert outside.exists()
    assert store.resolve_layout(name) is ProfileLayout.DOCUMENT


# --- Layout resolution ---


@pytest.mark.parametrize(
    "name, layout",
    [
        ("default", ProfileLayout.LEGACY),
        ("player.json", ProfileLayout.LEGACY),
        ("alice", ProfileLayout.FOLDER),
        ("alice/player.json", ProfileLayout.FOLDER),
        ("saved", ProfileLayout.DOCUMENT),
        ("saved.json", ProfileLayout.DOCUMENT),
        ("nobody", ProfileLayout.DOCUMENT),
    ],
)
def test_resolve_layout(populated_dir: Path, name, layout):
    assert ProfileStore(populated_dir).resolve_layout(name) is layout


# --- Loading ---


def test_load_legacy_profile(populated_dir: Path):
    document = ProfileStore(populated_dir).load_profile("default")
    assert document.active_player().name == "Rooty"
    assert [c.id for c in document.flashcards] == ["r1"]


def test_load_folder_profile_by_path(populated_dir: Path):
    document = ProfileStore(populated_dir).load_profile("alice/player.json")
    assert document.active_player().id == "alice"
    assert [c.id for c in document.flashcards] == ["a1"]


def test_load_document_profile(populated_dir: Path):
    document = ProfileStore(populated_dir).load_profile("saved")
    assert len(document.players) == 2
    assert document.active_player().name == "Second"


def test_load_folder_without_deck(data_dir: Path):
    _write(data_dir / "solo" / "player.json", {"name": "Solo"})
    document = ProfileStore(data_dir).load_profile("solo")
    assert document.flashcards == []


def test_load_folder_with_unreadable_deck(data_dir: Path, caplog):
    _write(data_dir / "solo" / "player.json", {"name": "Solo"})
    (data_dir / "solo" / "flashcards.json").write_text("nope", encoding="utf-8")
    with caplog.at_level(logging.WARNING):
        document = ProfileStore(data_dir).load_profile("solo")
    assert document.flashcards == []
    assert "Ignoring unreadable deck" in caplog.text


def test_load_missing_profile(store: ProfileStore):
    with pytest.raises(ProfileNotFoundError):
        store.load_profile("ghost")
    with pytest.raises(ProfileNotFoundError):
        store.load_profile("")


def test_load_invalid_player_record(data_dir: Path):
    _write(data_dir / "player.json", {"currentHp": 10, "maxHp": 3})
    with pytest.raises(ProfileFormatError, match="invalid player record"):
        ProfileStore(data_dir).load_profile("default")


def test_load_root_flashcards(populated_dir: Path, tmp_path: Path):
    assert [c.id for c in ProfileStore(populated_dir).load_root_flashcards()] == ["r1"]
    assert ProfileStore(tmp_path / "empty").load_root_flashcards() == []


# --- Writing ---


def test_save_profile_sanitizes_name(store: ProfileStore, player: Player):
    saved = store.save_profile("my/profile", ProfileDocument(players=[player]))
    assert saved == "my-profile"
    assert (store.data_dir / "my-profile.json").is_file()
    assert store.has_document("my/profile")


def test_save_profile_writes_camel_case(store: ProfileStore, player: Player):
    store.save_profile("ada", ProfileDocument(players=[player], active_player_id=player.id))
    raw = json.loads((store.data_dir / "ada.json").read_text(encoding="utf-8"))
    assert raw["activePlayerId"] == player.id
    assert raw["players"][0]["currentHp"] == 3


def test_write_profile_keeps_folder_layout(populated_dir: Path):
    store = ProfileStore(populated_dir)
    document = store.load_profile("alice")
    document.active_player().add_xp(100)
    document.flashcards[0].record_answer(True)

    assert store.write_profile("alice", document) == "alice"

    player = json.loads((populated_dir / "alice" / "player.json").read_text(encoding="utf-8"))
    deck = json.loads((populated_dir / "alice" / "flashcards.json").read_text(encoding="utf-8"))
    assert player["totalXp"] == 140
    assert player["currentLevel"] == 2
    assert deck["flashcards"][0]["timesAsked"] == 1
    assert not (populated_dir / "alice.json").exists()


def test_write_profile_legacy(store: ProfileStore, player: Player, sample_cards):
    name = store.write_profile(
        "player.json", ProfileDocument(players=[player], flashcards=sample_cards)
    )
    assert name == "default"
    assert store.root_player_path.is_file()
    assert len(store.load_root_flashcards()) == 5


def test_write_profile_document_for_unknown_name(store: ProfileStore, player: Player):
    assert store.write_profile("fresh", ProfileDocument(players=[player])) == "fresh"
    assert (store.data_dir / "fresh.json").is_file()


def test_save_root_player(store: ProfileStore, player: Player):
    store.save_root_player(player)
    raw = json.loads(store.root_player_path.read_text(encoding="utf-8"))
    assert raw["name"] == "Ada"


def test_save_profile_unwritable_dir(tmp_path: Path, player: Player):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = ProfileStore(blocker)
    with pytest.raises(ProfileWriteError):
        store.save_profile("x", ProfileDocument(players=[player]))


# --- Delete / import ---


def test_delete_profile(populated_dir: Path):
    store = ProfileStore(populated_dir)
    store.delete_profile("saved")
    assert not (populated_dir / "saved.json").exists()
    with pytest.raises(ProfileNotFoundError):
        store.delete_profile("saved")


def test_import_profile_uses_given_name(tmp_path: Path, store: ProfileStore):
    source = _write(
        tmp_path / "export.json",
        {"players": [{"name": "Imported"}], "flashcards": [{"question": "Q", "answer": "A"}]},
    )
    assert store.import_profile(source, name="mine") == "mine"
    assert store.load_profile("mine").active_player().name == "Imported"


def test_import_profile_uses_profile_name(tmp_path: Path, store: ProfileStore):
    source = _write(tmp_path / "export.json", {"profileName": "Team A", "players": []})
    assert store.import_profile(source) == "Team A"


def test_import_profile_generates_name(tmp_path: Path, store: ProfileStore):
    source = _write(tmp_path / "export.json", {"players": []})
    assert store.import_profile(source).startswith("imported-")


def test_import_profile_rejects_invalid_document(tmp_path: Path, store: ProfileStore):
    source = tmp_path / "bad.json"
    source.write_text("[]", encoding="utf-8")
    with pytest.raises(ProfileFormatError):
        store.import_profile(source)
    assert not store.data_dir.exists()


# --- Seeding ---


def test_seed_flashcards_on_first_use(store: ProfileStore):
    assert store.seed_flashcards_if_needed() is True
    cards = store.load_root_flashcards()
    assert len(cards) == len(load_starter_deck())
    assert store.seed_flashcards_if_needed() is False


def test_seed_flashcards_replaces_tiny_file(store: ProfileStore):
    store.ensure_data_dir()
    store.root_flashcards_path.write_text("[]", encoding="utf-8")
    assert store.seed_flashcards_if_needed() is True
    assert store.load_root_flashcards()


def test_seed_flashcards_keeps_existing_deck(populated_dir: Path):
    store = ProfileStore(populated_dir)
    assert store.seed_flashcards_if_needed() is False
    assert [c.id for c in store.load_root_flashcards()] == ["r1"]


def test_seed_flashcards_from_custom_source(tmp_path: Path, store: ProfileStore):
    source = _write(tmp_path / "deck.json", [{"id": "s", "question": "Q", "answer": "A"}])
    assert store.seed_flashcards_if_needed(source=source) is True
    assert [c.id for c in store.load_root_flashcards()] == ["s"]


def test_seed_flashcards_missing_source(tmp_path: Path, store: ProfileStore):
    with pytest.raises(ProfileNotFoundError):
        store.seed_flashcards_if_needed(source=tmp_path / "nope.json")


def test_starter_deck_is_valid():
    cards = load_starter_deck()
    assert len(cards) >= 10
    assert all(isinstance(card, Flashcard) for card in cards)
    assert len({card.id for card in cards}) == len(cards)
