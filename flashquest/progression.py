"""
Leveling arithmetic for players.

The threshold schedule is quadratic: with n = level - 1 the total XP needed to
reach a level is 75*n + 25*n**2, so the gap between consecutive levels grows
linearly and leveling gets slower as the player advances.
"""

import logging
from typing import TYPE_CHECKING

from .constants import XP_CURVE_LINEAR, XP_CURVE_QUADRATIC

if TYPE_CHECKING:
    from .models import Player

logger = logging.getLogger(__name__)


def xp_required_for_level(level: int) -> int:
    """
    Total XP needed to reach `level`.

    Returns 0 for level 1 and anything below it.
    """
    if level <= 1:
        return 0
    n = level - 1
    return XP_CURVE_LINEAR * n + XP_CURVE_QUADRATIC * n * n


def add_xp(player: "Player", amount: int) -> bool:
    """
    Award XP to a player and apply every level-up it unlocks.

    A single large award may raise several levels in one call. Non-positive
    amounts are ignored.

    Returns:
        bool: True if the player gained at least one level.
    """
    if amount <= 0:
        return False

    old_level = player.current_level
    player.total_xp += amount
    while player.total_xp >= xp_required_for_level(player.current_level + 1):
        player.current_level += 1

    if player.current_level > old_level:
        logger.info(
            f"Player '{player.name}' leveled up: {old_level} -> {player.current_level}"
        )
        return True
    return False


def take_damage(player: "Player", amount: int) -> bool:
    """
    Reduce the player's HP, never below zero. Non-positive amounts are ignored.

    Returns:
        bool: True if the player is now at 0 HP (defeated).
    """
    if amount <= 0:
        return player.current_hp <= 0
    player.current_hp = max(0, player.current_hp - amount)
    return player.current_hp <= 0


def restore_full_hp(player: "Player") -> None:
    player.current_hp = player.max_hp


def xp_to_next_level(player: "Player") -> int:
    """XP still missing before the next level-up (0 if already reachable)."""
    return max(
        0, xp_required_for_level(player.current_level + 1) - player.total_xp
    )


def level_progress(player: "Player") -> float:
    """
    Fraction of the way from the current level's threshold to the next one.

    Clamped to [0.0, 1.0] since level is only recomputed when XP is added.
    """
    floor = xp_required_for_level(player.current_level)
    ceiling = xp_required_for_level(player.current_level + 1)
    span = ceiling - floor
    if span <= 0:
        return 0.0
    return min(1.0, max(0.0, (player.total_xp - floor) / span))
