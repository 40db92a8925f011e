"""
CLI entry point for flashquest.
"""

# Standard library imports
from datetime import datetime
from pathlib import Path
from typing import Optional

# Third-party imports
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

# Local application imports
from flashquest.config import Settings, get_settings
from flashquest.exceptions import ProfileNotFoundError, ProfileStoreError
from flashquest.models import Player, ProfileDocument
from flashquest.store import ProfileStore
from flashquest.store.profile_store import load_starter_deck
from flashquest.cli._play_logic import open_session, play_logic
from flashquest.cli.quest_ui import render_player


console = Console()

app = typer.Typer(
    name="flashquest",
    help="FlashQuest: study flashcards in quests, level up your player.",
    add_completion=False,
    rich_markup_mode="markdown",
)


# ---------------------------------------------------------------------------
# Helpers for resolving the --data-dir option (FLASHQUEST_DATA_DIR envvar)
# ---------------------------------------------------------------------------


def _resolve_settings(data_dir: Optional[Path]) -> Settings:
    """Build settings, letting --data-dir override FLASHQUEST_DATA_DIR."""
    if data_dir is not None:
        return get_settings(data_dir=data_dir)
    return get_settings()


# Common typer options reused across commands
_data_dir_option = typer.Option(  # noqa: B008
    None,
    "--data-dir",
    help="Directory holding profiles and the root deck. "
    "Falls back to FLASHQUEST_DATA_DIR env var.",
    envvar="FLASHQUEST_DATA_DIR",
)

_profile_argument = typer.Argument(  # noqa: B008
    None,
    help="Profile to use ('default', a folder name or a saved profile). "
    "Defaults to the most recently modified profile.",
)


def _format_timestamp(ts: Optional[float]) -> str:
    if ts is None:
        return "-"
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M")


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


@app.command()
def profiles(
    data_dir: Optional[Path] = _data_dir_option,
):
    """List the profiles found in the data directory."""
    settings = _resolve_settings(data_dir)
    store = ProfileStore(settings.data_dir)
    try:
        summaries = store.list_profiles()
    except (ProfileStoreError, OSError) as e:
        console.print(f"[bold red]Error listing profiles:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    if not summaries:
        console.print(
            f"[yellow]No profiles found in {escape(str(settings.data_dir))}.[/yellow]"
        )
        return

    table = Table(title="Profiles")
    table.add_column("Profile", style="cyan")
    table.add_column("Player", style="magenta")
    table.add_column("Level", style="yellow")
    table.add_column("Total XP", style="yellow")
    table.add_column("Layout")
    table.add_column("Last Modified", style="dim")
    for summary in summaries:
        table.add_row(
            escape(summary.load_key),
            escape(summary.display_name),
            str(summary.level) if summary.level is not None else "-",
            str(summary.total_xp) if summary.total_xp is not None else "-",
            summary.layout.value,
            _format_timestamp(summary.last_modified),
        )
    console.print(table)


@app.command()
def show(
    profile: Optional[str] = _profile_argument,
    data_dir: Optional[Path] = _data_dir_option,
):
    """Show a profile's player and flashcard deck."""
    settings = _resolve_settings(data_dir)
    try:
        session = open_session(settings, profile)
    except ProfileStoreError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    console.print(render_player(session.player))

    if not session.deck:
        console.print("[yellow]No flashcards in this profile.[/yellow]")
        return

    deck_table = Table(title=f"Flashcards ({len(session.deck)})")
    deck_table.add_column("Question", style="cyan", overflow="fold")
    deck_table.add_column("Category", style="magenta")
    deck_table.add_column("Difficulty")
    deck_table.add_column("Asked", justify="right")
    deck_table.add_column("Correct", justify="right")
    deck_table.add_column("Accuracy", justify="right", style="green")
    for card in session.deck:
        accuracy = card.accuracy
        deck_table.add_row(
            escape(card.question),
            escape(card.category),
            card.difficulty.value,
            str(card.times_asked),
            str(card.times_correct),
            f"{accuracy:.0%}" if accuracy is not None else "-",
        )
    console.print(deck_table)


@app.command()
def new(
    name: str = typer.Argument(..., help="Name of the profile to create."),  # noqa: B008
    player_name: Optional[str] = typer.Option(
        None, "--player-name", help="Player name (defaults to the profile name)."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing profile."
    ),
    data_dir: Optional[Path] = _data_dir_option,
):
    """Create a profile with a fresh player and the starter deck."""
    settings = _resolve_settings(data_dir)
    store = ProfileStore(settings.data_dir)

    if store.has_document(name) and not force:
        console.print(
            f"[bold red]Error: profile '{escape(name)}' already exists. "
            "Use --force to overwrite it.[/bold red]"
        )
        raise typer.Exit(code=1)

    player = Player(
        name=player_name or name,
        current_hp=settings.max_hp,
        max_hp=settings.max_hp,
    )
    try:
        document = ProfileDocument(
            players=[player],
            flashcards=load_starter_deck(),
            active_player_id=player.id,
        )
        saved_name = store.save_profile(name, document)
    except ProfileStoreError as e:
        console.print(f"[bold red]Failed to save profile:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    console.print(f"[bold green]Profile saved: {escape(saved_name)}[/bold green]")


# ---------------------------------------------------------------------------
# Play command
# ---------------------------------------------------------------------------


@app.command()
def play(
    profile: Optional[str] = _profile_argument,
    questions: Optional[int] = typer.Option(
        None,
        "--questions",
        "-n",
        min=1,
        help="Number of questions in the quest.",
    ),
    save_as: Optional[str] = typer.Option(
        None,
        "--save-as",
        help="Save the result as a new profile instead of updating the loaded one.",
    ),
    data_dir: Optional[Path] = _data_dir_option,
):
    """Play one quest with a profile's deck."""
    settings = _resolve_settings(data_dir)
    try:
        result = play_logic(
            settings=settings,
            profile=profile,
            question_count=questions,
            save_as=save_as,
        )
    except ProfileStoreError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    if result is not None and not result.ok:
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Import / delete
# ---------------------------------------------------------------------------


@app.command("import")
def import_profile(
    path: Path = typer.Argument(  # noqa: B008
        ...,
        help="JSON profile document to import.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    name: Optional[str] = typer.Option(
        None,
        "--name",
        help="Save the imported profile under this name.",
    ),
    data_dir: Optional[Path] = _data_dir_option,
):
    """Import a profile document into the data directory."""
    settings = _resolve_settings(data_dir)
    store = ProfileStore(settings.data_dir)
    try:
        saved_name = store.import_profile(path, name=name)
    except ProfileStoreError as e:
        console.print(f"[bold red]Failed to import JSON:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    console.print(
        f"[bold green]Imported and saved profile: {escape(saved_name)}[/bold green]"
    )


@app.command()
def delete(
    name: str = typer.Argument(..., help="Saved profile to delete."),  # noqa: B008
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Bypass confirmation prompt."
    ),
    data_dir: Optional[Path] = _data_dir_option,
):
    """Delete a saved profile document."""
    settings = _resolve_settings(data_dir)
    store = ProfileStore(settings.data_dir)

    if not yes:
        confirmed = typer.confirm(f"Delete profile '{name}'?")
        if not confirmed:
            console.print("Delete cancelled.")
            raise typer.Exit()

    try:
        store.delete_profile(name)
    except ProfileNotFoundError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e
    except ProfileStoreError as e:
        console.print(f"[bold red]Failed to delete:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    console.print(f"[bold green]Deleted profile: {escape(name)}[/bold green]")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """
    Run the CLI application.

    If an unexpected exception occurs, print a bold red error message to the console and exit the process with status code 1.
    """
    try:
        app()
    except Exception as e:
        console.print(f"[bold red]UNEXPECTED ERROR: {e}[/bold red]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
