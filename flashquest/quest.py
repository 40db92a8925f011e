"""
This module defines the Quest state machine: a fixed-size batch of flashcards
that is answered one card at a time, scored, and closed with a completion bonus.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from .constants import (
    BASE_CORRECT_XP,
    DEFAULT_MAX_HP,
    DEFAULT_QUEST_NAME,
    DEFAULT_QUESTION_COUNT,
    PERFECT_QUEST_BONUS,
    QUEST_COMPLETION_BONUS,
)
from .models import Flashcard

# Initialize logger
logger = logging.getLogger(__name__)


class QuestState(Enum):
    """Lifecycle of a quest. COMPLETED and FAILED are terminal."""

    INACTIVE = "inactive"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class AnswerStatus(Enum):
    """What happened to an answer handed to Quest.process_answer."""

    ADVANCED = "advanced"
    ALREADY_COMPLETE = "already_complete"
    NO_ACTIVE_QUEST = "no_active_quest"


@dataclass(frozen=True)
class AnswerOutcome:
    status: AnswerStatus
    xp: int = 0
    complete: bool = True
    bonus_xp: int = 0

    @property
    def advanced(self) -> bool:
        return self.status is AnswerStatus.ADVANCED


class Quest:
    """
    Sequences a batch of flashcards and scores the answers.

    A quest is single-use:
    - `start()` takes a prefix of the deck and activates the quest.
    - `process_answer()` scores the current card and moves to the next one.
    - Once the batch is exhausted the quest completes on its own; a failed or
      completed quest is never restarted, a new Quest is needed instead.
    """

    def __init__(
        self,
        name: str = DEFAULT_QUEST_NAME,
        question_count: int = DEFAULT_QUESTION_COUNT,
        custom_hp: int = DEFAULT_MAX_HP,
    ):
        """
        Create an inactive quest.

        Parameters:
            name (str): Display name of the quest.
            question_count (int): Requested batch size. Values below 1 are
                raised to 1. The batch may end up smaller when the deck has
                fewer cards.
            custom_hp (int): HP budget requested for the quest. Stored only.
        """
        if question_count < 1:
            logger.warning(
                f"Quest '{name}': question_count {question_count} raised to 1."
            )
            question_count = 1
        self.name = name
        self.question_count = question_count
        self.custom_hp = custom_hp
        self.flashcards: List[Flashcard] = []
        self.current_question_index = 0
        self.correct_answers = 0
        self.total_xp_earned = 0
        self.state = QuestState.INACTIVE

    @property
    def is_active(self) -> bool:
        return self.state is QuestState.ACTIVE

    @property
    def is_completed(self) -> bool:
        return self.state is QuestState.COMPLETED

    @property
    def is_failed(self) -> bool:
        return self.state is QuestState.FAILED

    @property
    def batch_size(self) -> int:
        return len(self.flashcards)

    @property
    def remaining(self) -> int:
        return max(0, self.batch_size - self.current_question_index)

    @property
    def progress(self) -> float:
        """Fraction of the batch already answered (0.0 before start)."""
        if not self.flashcards:
            return 0.0
        return min(1.0, self.current_question_index / self.batch_size)

    @property
    def current_card(self) -> Optional[Flashcard]:
        """The card awaiting an answer, or None when nothing is pending."""
        if not self.is_active or self.remaining == 0:
            return None
        return self.flashcards[self.current_question_index]

    @property
    def is_perfect(self) -> bool:
        """Every question answered correctly and the full batch was served."""
        return (
            self.correct_answers == self.batch_size
            and self.batch_size == self.question_count
        )

    def start(self, deck: Sequence[Flashcard]) -> bool:
        """
        Activate the quest with the first `question_count` cards of the deck.

        The card objects are shared with the deck, so answering updates the
        deck's per-card counters.

        Returns:
            bool: True if the quest was activated. Starting a quest that is not
            INACTIVE, or starting with an empty deck, does nothing.
        """
        if self.state is not QuestState.INACTIVE:
            logger.warning(
                f"Quest '{self.name}' cannot be started from state {self.state.value}."
            )
            return False
        if not deck:
            logger.warning(f"Quest '{self.name}' needs at least one flashcard.")
            return False

        self.flashcards = list(deck[: self.question_count])
        self.current_question_index = 0
        self.correct_answers = 0
        self.total_xp_earned = 0
        self.state = QuestState.ACTIVE
        logger.info(
            f"Started quest '{self.name}' with {self.batch_size} of "
            f"{self.question_count} requested cards."
        )
        return True

    def process_answer(self, is_correct: bool) -> AnswerOutcome:
        """
        Score the answer to the current card and advance to the next one.

        A correct answer is worth the base reward plus the card's difficulty
        bonus. When the last card is answered the quest completes in the same
        call and the completion bonuses are added to total_xp_earned.

        Returns:
            AnswerOutcome: ADVANCED with the per-answer XP, or a guarded
            ALREADY_COMPLETE / NO_ACTIVE_QUEST outcome (xp=0, complete=True)
            when there is nothing to answer. Guarded calls change nothing.
        """
        if self.state is QuestState.COMPLETED:
            return AnswerOutcome(status=AnswerStatus.ALREADY_COMPLETE)
        if not self.is_active:
            return AnswerOutcome(status=AnswerStatus.NO_ACTIVE_QUEST)
        if self.remaining == 0:
            return AnswerOutcome(status=AnswerStatus.ALREADY_COMPLETE)

        card = self.flashcards[self.current_question_index]
        xp = 0
        if is_correct:
            xp = BASE_CORRECT_XP + card.difficulty_xp_bonus()
            self.correct_answers += 1
        card.record_answer(is_correct)
        self.total_xp_earned += xp
        self.current_question_index += 1

        bonus_xp = 0
        complete = self.current_question_index >= self.batch_size
        if complete:
            bonus_xp = self._complete()

        logger.debug(
            f"Quest '{self.name}': card {card.id} answered "
            f"{'correctly' if is_correct else 'incorrectly'} (+{xp} XP)."
        )
        return AnswerOutcome(
            status=AnswerStatus.ADVANCED,
            xp=xp,
            complete=complete,
            bonus_xp=bonus_xp,
        )

    def _complete(self) -> int:
        """Close the quest and add the completion bonuses. Returns the bonus."""
        self.state = QuestState.COMPLETED
        bonus = QUEST_COMPLETION_BONUS
        if self.is_perfect:
            bonus += PERFECT_QUEST_BONUS
        self.total_xp_earned += bonus
        logger.info(
            f"Quest '{self.name}' completed: {self.correct_answers}/{self.batch_size} "
            f"correct, {self.total_xp_earned} XP earned."
        )
        return bonus

    def fail(self) -> bool:
        """
        Abort an active quest after the player was defeated.

        The XP collected so far stays in total_xp_earned as a record but is
        never awarded; card counters already updated are kept.

        Returns:
            bool: True if the quest moved to FAILED.
        """
        if not self.is_active:
            return False
        self.state = QuestState.FAILED
        logger.info(
            f"Quest '{self.name}' failed after {self.current_question_index} "
            f"of {self.batch_size} questions."
        )
        return True
