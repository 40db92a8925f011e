import os
import sys
import pytest
from pathlib import Path
from typing import List

from flashquest.config import Settings
from flashquest.models import Difficulty, Flashcard, Player
from flashquest.session import QuestSession
from flashquest.store import ProfileStore


# each test runs on cwd to its temp dir
@pytest.fixture(autouse=True)
def go_to_tmpdir(request, monkeypatch):
    """
    Run each test inside its own tmpdir with no FLASHQUEST_* variables set.

    Parameters:
        request: The pytest `request` fixture used to obtain the per-test `tmpdir` fixture.
        monkeypatch: Used to clear FLASHQUEST_* environment variables so a developer's environment cannot leak into settings.
    """
    for key in [k for k in os.environ if k.startswith("FLASHQUEST_")]:
        monkeypatch.delenv(key, raising=False)
    tmpdir = request.getfixturevalue("tmpdir")
    sys.path.insert(0, str(tmpdir))
    with tmpdir.as_cwd():
        yield


# --- Settings and store fixtures ---
@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Directory used as the profile data directory (not created yet)."""
    return tmp_path / "data"


@pytest.fixture
def settings(data_dir: Path) -> Settings:
    """Settings pointing at the per-test data directory."""
    return Settings(data_dir=data_dir)


@pytest.fixture
def store(data_dir: Path) -> ProfileStore:
    return ProfileStore(data_dir)


# --- Model fixtures ---
@pytest.fixture
def player() -> Player:
    """A fresh level 1 player with full HP."""
    return Player(id="player-1", name="Ada", current_hp=3, max_hp=3)


@pytest.fixture
def sample_cards() -> List[Flashcard]:
    """
    Provide a five-card deck of mixed difficulty.

    Returns:
        List[Flashcard]: EASY, MEDIUM, HARD, EASY, MEDIUM in that order.
    """
    difficulties = [
        Difficulty.EASY,
        Difficulty.MEDIUM,
        Difficulty.HARD,
        Difficulty.EASY,
        Difficulty.MEDIUM,
    ]
    return [
        Flashcard(
            id=f"card-{i}",
            question=f"Question {i}",
            answer=f"Answer {i}",
            category="Testing",
            difficulty=difficulty,
        )
        for i, difficulty in enumerate(difficulties, start=1)
    ]


@pytest.fixture
def session(
    player: Player, sample_cards: List[Flashcard], store: ProfileStore, settings: Settings
) -> QuestSession:
    """A store-backed session over the sample deck."""
    return QuestSession(
        player=player, deck=sample_cards, store=store, settings=settings
    )
