"""
This module defines the QuestSession class, the explicitly owned state of one
study session: the player, the flashcard deck and the quest being played.
It applies answer outcomes to the player and talks to the profile store at
session boundaries.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .config import Settings
from .constants import WRONG_ANSWER_DAMAGE
from .exceptions import ProfileStoreError
from .models import Flashcard, Player, ProfileDocument
from .quest import AnswerOutcome, AnswerStatus, Quest
from .store import ProfileStore
from .store.profile_store import LEGACY_PROFILE_ID

# Initialize logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnswerResult:
    """Effect of one answer on the quest and on the player."""

    outcome: AnswerOutcome
    damage_taken: int = 0
    defeated: bool = False
    quest_failed: bool = False
    xp_awarded: int = 0
    leveled_up: bool = False


@dataclass(frozen=True)
class OperationResult:
    """Success flag and message of a persistence call."""

    ok: bool
    message: str
    name: Optional[str] = None


class QuestSession:
    """
    Owns the player, the deck and the current quest of a study session.

    This class is responsible for:
    - Starting quests over the session's deck.
    - Turning answers into damage, defeat and XP awards for the player.
    - Loading and saving profiles, reporting failures instead of raising.
    """

    def __init__(
        self,
        player: Optional[Player] = None,
        deck: Optional[Iterable[Flashcard]] = None,
        store: Optional[ProfileStore] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Create a session with a default player and an empty deck unless given.

        Parameters:
            player (Optional[Player]): The session's player. Defaults to a fresh
                player built from the settings.
            deck (Optional[Iterable[Flashcard]]): Cards available to quests.
            store (Optional[ProfileStore]): Persistence backend; without one,
                profile operations report failure.
            settings (Optional[Settings]): Session defaults.
        """
        self.settings = settings or Settings()
        self.player = player or Player(
            name=self.settings.player_name,
            current_hp=self.settings.max_hp,
            max_hp=self.settings.max_hp,
        )
        self.deck: list[Flashcard] = list(deck) if deck is not None else []
        self.store = store
        self.quest: Optional[Quest] = None
        self.profile_name: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "QuestSession":
        """Create a session backed by a ProfileStore in settings.data_dir."""
        return cls(store=ProfileStore(settings.data_dir), settings=settings)

    # ------------------------------------------------------------------
    # Quest flow
    # ------------------------------------------------------------------

    def start_quest(
        self,
        name: Optional[str] = None,
        question_count: Optional[int] = None,
        custom_hp: Optional[int] = None,
    ) -> Optional[Quest]:
        """
        Restore the player's HP and start a new quest over the deck.

        When playing the legacy root profile (or no profile), the root
        player record is refreshed on a best-effort basis if a store is
        attached and settings.persist_player_on_start is set.

        Returns:
            Optional[Quest]: The started quest, or None if the deck is empty.
        """
        if not self.deck:
            logger.warning("No flashcards available. Load or import a profile first.")
            return None

        quest = Quest(
            name=name or self.settings.quest_name,
            question_count=(
                question_count
                if question_count is not None
                else self.settings.question_count
            ),
            custom_hp=custom_hp if custom_hp is not None else self.player.max_hp,
        )
        self.player.restore_full_hp()

        if (
            self.store is not None
            and self.settings.persist_player_on_start
            and self.profile_name in (None, LEGACY_PROFILE_ID)
        ):
            try:
                self.store.save_root_player(self.player)
            except ProfileStoreError as e:
                logger.warning(f"Failed to persist root player: {e}")

        quest.start(self.deck)
        self.quest = quest
        return quest

    def answer(self, is_correct: bool) -> AnswerResult:
        """
        Feed one answer to the current quest and apply its effects.

        A wrong answer costs the player HP; a defeat aborts a quest that is
        still running. When the quest completes, everything it earned is
        awarded to the player.

        Returns:
            AnswerResult: The quest outcome plus damage, defeat and XP effects.
            Guarded outcomes (no quest, finished quest) have no effects.
        """
        if self.quest is None:
            return AnswerResult(
                outcome=AnswerOutcome(status=AnswerStatus.NO_ACTIVE_QUEST)
            )

        outcome = self.quest.process_answer(is_correct)
        if not outcome.advanced:
            return AnswerResult(outcome=outcome)

        damage_taken = 0
        defeated = False
        quest_failed = False
        if not is_correct:
            damage_taken = WRONG_ANSWER_DAMAGE
            defeated = self.player.take_damage(damage_taken)
            if defeated:
                quest_failed = self.quest.fail()
                logger.info(f"Player '{self.player.name}' was defeated.")

        xp_awarded = 0
        leveled_up = False
        if self.quest.is_completed:
            xp_awarded = self.quest.total_xp_earned
            leveled_up = self.player.add_xp(xp_awarded)

        return AnswerResult(
            outcome=outcome,
            damage_taken=damage_taken,
            defeated=defeated,
            quest_failed=quest_failed,
            xp_awarded=xp_awarded,
            leveled_up=leveled_up,
        )

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def apply_profile(self, document: ProfileDocument) -> None:
        """
        Replace the session's player and/or deck with a loaded profile.

        The active player (or the first one) replaces the current player when
        the document has players; the deck is replaced only when the document
        has cards. A quest in progress is dropped.
        """
        player = document.active_player()
        if player is not None:
            self.player = player
        if document.flashcards:
            self.deck = list(document.flashcards)
        if self.quest is not None and self.quest.is_active:
            logger.info(f"Abandoning quest '{self.quest.name}' for a new profile.")
        self.quest = None

    def to_document(self) -> ProfileDocument:
        """Snapshot the session as a profile document."""
        return ProfileDocument(
            players=[self.player],
            flashcards=list(self.deck),
            active_player_id=self.player.id,
        )

    def load_profile(self, name: str) -> OperationResult:
        """
        Load a profile from the store into the session.

        On failure the session's player and deck are left untouched.
        """
        if self.store is None:
            return OperationResult(ok=False, message="No profile store configured.")
        try:
            document = self.store.load_profile(name)
        except ProfileStoreError as e:
            logger.error(f"Failed to load profile '{name}': {e}")
            return OperationResult(ok=False, message=str(e), name=name)

        self.apply_profile(document)
        self.profile_name = name
        return OperationResult(ok=True, message=f"Loaded profile: {name}", name=name)

    def save_profile(self, name: str) -> OperationResult:
        """Save the session as a named profile document."""
        if self.store is None:
            return OperationResult(ok=False, message="No profile store configured.")
        try:
            saved_name = self.store.save_profile(name, self.to_document())
        except ProfileStoreError as e:
            logger.error(f"Failed to save profile '{name}': {e}")
            return OperationResult(ok=False, message=str(e), name=name)

        self.profile_name = saved_name
        return OperationResult(
            ok=True, message=f"Profile saved: {saved_name}", name=saved_name
        )

    def save(self) -> OperationResult:
        """
        Write the session back to the profile it was loaded from.

        Without a loaded profile the legacy root files are written.
        """
        if self.store is None:
            return OperationResult(ok=False, message="No profile store configured.")
        name = self.profile_name or LEGACY_PROFILE_ID
        try:
            saved_name = self.store.write_profile(name, self.to_document())
        except ProfileStoreError as e:
            logger.error(f"Failed to write profile '{name}': {e}")
            return OperationResult(ok=False, message=str(e), name=name)

        self.profile_name = saved_name
        return OperationResult(
            ok=True, message=f"Profile saved: {saved_name}", name=saved_name
        )
