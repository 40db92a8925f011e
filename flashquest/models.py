"""
Pydantic models for players, flashcards and persisted profiles.

Field names are snake_case in Python; the JSON records on disk use
camelCase keys (see the serialization aliases).
"""

from __future__ import annotations

import logging
import uuid
from enum import Enum
from typing import Any, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from . import progression
from .constants import (
    DEFAULT_MAX_HP,
    DEFAULT_PLAYER_NAME,
    DIFFICULTY_XP_BONUS,
)

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


class Difficulty(str, Enum):
    """
    How hard a flashcard is. Drives the additive XP bonus on a correct answer.
    """

    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


def difficulty_bonus(difficulty: Any) -> int:
    """
    Return the extra XP for correctly answering a card of the given difficulty.

    MEDIUM is worth 5, HARD 10; EASY and any unrecognised value are worth 0.
    """
    if isinstance(difficulty, Difficulty):
        key = difficulty.value
    else:
        key = str(difficulty).upper() if difficulty is not None else ""
    return DIFFICULTY_XP_BONUS.get(key, 0)


class ProfileLayout(str, Enum):
    """
    On-disk shape a profile is stored in.
    """

    LEGACY = "root"  # <data_dir>/player.json + <data_dir>/flashcards.json
    FOLDER = "folder"  # <data_dir>/<name>/player.json + flashcards.json
    DOCUMENT = "document"  # <data_dir>/<name>.json profile document


class Player(BaseModel):
    """
    The single player of a study session and their progression state.

    Level is not kept in sync with total_xp eagerly; it only moves forward
    when XP is added (see `flashquest.progression.add_xp`).
    """

    model_config = ConfigDict(
        validate_assignment=True, extra="ignore", populate_by_name=True
    )

    id: str = Field(
        default_factory=_new_id,
        description="Player identifier. Generated when missing.",
    )
    name: str = Field(
        default=DEFAULT_PLAYER_NAME,
        description="Display name of the player.",
    )
    current_level: int = Field(
        default=1,
        ge=1,
        validation_alias=AliasChoices("currentLevel", "current_level", "level"),
        serialization_alias="currentLevel",
        description="Current level, starting at 1.",
    )
    total_xp: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("totalXp", "total_xp"),
        serialization_alias="totalXp",
        description="Experience accumulated over all quests.",
    )
    current_hp: int = Field(
        default=DEFAULT_MAX_HP,
        ge=0,
        validation_alias=AliasChoices("currentHp", "current_hp"),
        serialization_alias="currentHp",
        description="Remaining hit points; 0 means defeated.",
    )
    max_hp: int = Field(
        default=DEFAULT_MAX_HP,
        ge=0,
        validation_alias=AliasChoices("maxHp", "max_hp"),
        serialization_alias="maxHp",
        description="Hit points restored at the start of each quest.",
    )

    @model_validator(mode="after")
    def check_hp_within_max(self) -> "Player":
        """Ensure 0 <= current_hp <= max_hp."""
        if self.current_hp > self.max_hp:
            raise ValueError(
                f"current_hp ({self.current_hp}) exceeds max_hp ({self.max_hp})."
            )
        return self

    def add_xp(self, amount: int) -> bool:
        return progression.add_xp(self, amount)

    def take_damage(self, amount: int) -> bool:
        return progression.take_damage(self, amount)

    def restore_full_hp(self) -> None:
        progression.restore_full_hp(self)

    @property
    def is_defeated(self) -> bool:
        return self.current_hp <= 0

    @property
    def xp_for_next_level(self) -> int:
        """Total XP at which the next level is reached."""
        return progression.xp_required_for_level(self.current_level + 1)


class Flashcard(BaseModel):
    """
    A question/answer pair with its difficulty and usage counters.
    """

    model_config = ConfigDict(
        validate_assignment=True, extra="ignore", populate_by_name=True
    )

    id: str = Field(
        default_factory=_new_id,
        description="Unique card identifier. Generated when missing.",
    )
    question: str = Field(..., description="Question text shown first.")
    answer: str = Field(..., description="Answer text revealed on demand.")
    category: str = Field(
        default="General", description="Free-form grouping label."
    )
    difficulty: Difficulty = Field(
        default=Difficulty.EASY,
        description="EASY, MEDIUM or HARD; controls the XP bonus.",
    )
    times_asked: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("timesAsked", "times_asked"),
        serialization_alias="timesAsked",
        description="How many times the card was answered.",
    )
    times_correct: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("timesCorrect", "times_correct"),
        serialization_alias="timesCorrect",
        description="How many of those answers were correct.",
    )

    @field_validator("difficulty", mode="before")
    @classmethod
    def coerce_difficulty(cls, value: Any) -> Any:
        """Accept any casing; unknown difficulty names fall back to EASY."""
        if isinstance(value, Difficulty) or value is None:
            return value or Difficulty.EASY
        name = str(value).strip().upper()
        if name not in Difficulty.__members__:
            logger.warning(
                f"Unknown difficulty '{value}', treating the card as EASY."
            )
            return Difficulty.EASY
        return Difficulty[name]

    @model_validator(mode="after")
    def check_counters(self) -> "Flashcard":
        """Ensure times_correct never exceeds times_asked."""
        if self.times_correct > self.times_asked:
            raise ValueError(
                f"times_correct ({self.times_correct}) exceeds "
                f"times_asked ({self.times_asked})."
            )
        return self

    def record_answer(self, is_correct: bool) -> None:
        """Count one answer for this card."""
        self.times_asked += 1
        if is_correct:
            self.times_correct += 1

    def difficulty_xp_bonus(self) -> int:
        return difficulty_bonus(self.difficulty)

    @property
    def accuracy(self) -> Optional[float]:
        """Share of correct answers, or None if the card was never asked."""
        if self.times_asked == 0:
            return None
        return self.times_correct / self.times_asked


class ProfileDocument(BaseModel):
    """
    A persisted bundle of players and their flashcard deck.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    players: List[Player] = Field(default_factory=list)
    flashcards: List[Flashcard] = Field(default_factory=list)
    active_player_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("activePlayerId", "active_player_id"),
        serialization_alias="activePlayerId",
    )
    profile_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("profileName", "profile_name"),
        serialization_alias="profileName",
        description="Suggested name when the document is imported.",
    )

    def active_player(self) -> Optional[Player]:
        """Return the player matching active_player_id, else the first one."""
        if not self.players:
            return None
        if self.active_player_id is not None:
            for player in self.players:
                if player.id == self.active_player_id:
                    return player
        return self.players[0]


class ProfileSummary(BaseModel):
    """Listing metadata for one profile found in the data directory."""

    model_config = ConfigDict(extra="forbid")

    id: str
    display_name: str
    layout: ProfileLayout
    path: str = Field(..., description="Path relative to the data directory.")
    level: Optional[int] = None
    total_xp: Optional[int] = None
    last_modified: Optional[float] = Field(
        default=None, description="POSIX mtime of the record, if readable."
    )

    @property
    def load_key(self) -> str:
        """
        Name to pass to ProfileStore.load_profile for this entry.

        Documents keep their '.json' suffix so a folder of the same name
        cannot shadow them.
        """
        if self.layout is ProfileLayout.LEGACY:
            return "default"
        if self.layout is ProfileLayout.DOCUMENT:
            return f"{self.id}.json"
        return self.id
