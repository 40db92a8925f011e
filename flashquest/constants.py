"""
Progression and scoring constants.

This module contains the static numbers of the leveling curve and the quest
reward schedule. No runtime configuration or path defaults - pure constants only.
"""
from typing import Dict

# Level thresholds: xp_required(level) = LINEAR * n + QUADRATIC * n**2, n = level - 1
XP_CURVE_LINEAR: int = 75
XP_CURVE_QUADRATIC: int = 25

# Player defaults for a freshly created profile.
DEFAULT_PLAYER_NAME: str = "Player One"
DEFAULT_MAX_HP: int = 3

# Quest defaults.
DEFAULT_QUEST_NAME: str = "Sample Quest"
DEFAULT_QUESTION_COUNT: int = 10

# Rewards
BASE_CORRECT_XP: int = 10
QUEST_COMPLETION_BONUS: int = 50
PERFECT_QUEST_BONUS: int = 25
WRONG_ANSWER_DAMAGE: int = 1

# Additive XP per difficulty name; anything missing here is worth 0.
DIFFICULTY_XP_BONUS: Dict[str, int] = {
    "EASY": 0,
    "MEDIUM": 5,
    "HARD": 10,
}
