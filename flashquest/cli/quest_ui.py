"""
Command-line interface for playing a quest.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from flashquest.models import Flashcard, Player
from flashquest.progression import xp_to_next_level
from flashquest.quest import Quest
from flashquest.session import AnswerResult, QuestSession

logger = logging.getLogger(__name__)
console = Console()

_YES = {"y", "yes"}
_NO = {"n", "no"}


def _get_user_verdict() -> bool:
    """
    Ask the player whether they answered the card correctly.

    Re-prompts until a yes/no answer is given.

    Returns:
        bool: True for a correct answer, False for a wrong one.
    """
    while True:
        reply = console.input("[bold]Did you get it right? (y/n): [/bold]")
        reply = (reply or "").strip().lower()
        if reply in _YES:
            return True
        if reply in _NO:
            return False
        console.print("[bold red]Invalid input. Please answer y or n.[/bold red]")


def _display_card(card: Flashcard, number: int) -> None:
    """
    Show a card's question, wait for Enter, then reveal the answer.
    """
    console.print(
        Panel(
            escape(card.question),
            title=f"Q{number}",
            subtitle=f"{escape(card.category)} • {card.difficulty.value}",
            border_style="magenta",
        )
    )
    console.input("[italic]Press Enter to reveal the answer...[/italic]")
    console.print(Panel(escape(card.answer), title="Answer", border_style="blue"))


def render_player(player: Player) -> Table:
    """Build a small table with the player's level, XP and hearts."""
    hearts = "♥" * player.current_hp + "♡" * (player.max_hp - player.current_hp)
    table = Table(title=escape(player.name), show_header=False)
    table.add_column("Stat", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Level", str(player.current_level))
    table.add_row("Total XP", str(player.total_xp))
    table.add_row("XP to next level", str(xp_to_next_level(player)))
    table.add_row("HP", f"[red]{hearts}[/red] {player.current_hp}/{player.max_hp}")
    return table


def _report_answer(result: AnswerResult, player: Player) -> None:
    if result.outcome.xp > 0:
        console.print(f"[green]Correct![/green] +{result.outcome.xp} XP")
    else:
        console.print(
            f"[red]Wrong![/red] -{result.damage_taken} HP "
            f"({player.current_hp}/{player.max_hp} left)"
        )


def start_quest_flow(
    session: QuestSession,
    name: Optional[str] = None,
    question_count: Optional[int] = None,
) -> Optional[Quest]:
    """
    Manages the command-line quest flow.

    Args:
        session: The QuestSession holding the player and the deck.
        name: Optional quest name (settings default otherwise).
        question_count: Optional batch size (settings default otherwise).

    Returns:
        The finished (completed or failed) quest, or None if no quest could
        be started.
    """
    quest = session.start_quest(name=name, question_count=question_count)
    if quest is None:
        console.print(
            "[bold yellow]No flashcards available. Please load or import a "
            "profile with flashcards.[/bold yellow]"
        )
        return None

    console.print(
        f"[bold cyan]Starting quest '{escape(quest.name)}' with "
        f"{quest.batch_size} questions...[/bold cyan]"
    )

    last_result: Optional[AnswerResult] = None
    while (card := quest.current_card) is not None:
        number = quest.current_question_index + 1
        console.rule(
            f"[bold]Card {number} of {quest.batch_size} • {quest.progress:.0%}[/bold]"
        )
        _display_card(card, number)
        is_correct = _get_user_verdict()

        last_result = session.answer(is_correct)
        _report_answer(last_result, session.player)
        console.print("")  # Add a blank line for spacing

        if last_result.quest_failed:
            console.print("[bold red]Player died! Quest failed.[/bold red]")
            break

    if quest.is_completed and last_result is not None:
        console.print(
            f"[bold green]Quest complete! XP earned: {quest.total_xp_earned}[/bold green]"
        )
        if quest.is_perfect:
            console.print("[bold yellow]Perfect run![/bold yellow]")
        if last_result.leveled_up:
            console.print(
                f"[bold magenta]Level up! You are now level "
                f"{session.player.current_level}.[/bold magenta]"
            )

    console.print(render_player(session.player))
    return quest
