"""FlashQuest - flashcard quests with player progression and JSON profiles."""

from .models import Difficulty, Flashcard, Player, ProfileDocument, ProfileLayout
from .quest import AnswerOutcome, AnswerStatus, Quest, QuestState
from .session import QuestSession
from .store import ProfileStore

__all__ = [
    "Difficulty",
    "Flashcard",
    "Player",
    "ProfileDocument",
    "ProfileLayout",
    "AnswerOutcome",
    "AnswerStatus",
    "Quest",
    "QuestState",
    "QuestSession",
    "ProfileStore",
]
