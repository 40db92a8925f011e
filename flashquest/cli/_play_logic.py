import logging
from typing import Optional

from rich.console import Console

from flashquest.config import Settings
from flashquest.exceptions import ProfileStoreError
from flashquest.session import OperationResult, QuestSession
from flashquest.store.profile_store import LEGACY_PROFILE_ID
from flashquest.cli.quest_ui import start_quest_flow

logger = logging.getLogger(__name__)
console = Console()


def open_session(settings: Settings, profile: Optional[str] = None) -> QuestSession:
    """
    Create a session and load a profile into it.

    Seeds the root deck on first use. Without an explicit profile the most
    recently modified one is loaded; on a fresh data directory the session
    starts with a new player and the seeded root deck.

    Raises:
        ProfileStoreError: If the requested profile cannot be loaded.
    """
    session = QuestSession.from_settings(settings)
    store = session.store

    try:
        store.seed_flashcards_if_needed()
    except ProfileStoreError as e:
        logger.warning(f"Failed to seed flashcards: {e}")

    if profile is None:
        profiles = store.list_profiles()
        if not profiles:
            session.deck = store.load_root_flashcards()
            return session
        profile = profiles[0].load_key

    if profile == LEGACY_PROFILE_ID and not store.root_player_path.is_file():
        session.deck = store.load_root_flashcards()
        return session

    result = session.load_profile(profile)
    if not result.ok:
        raise ProfileStoreError(result.message)
    return session


def play_logic(
    settings: Settings,
    profile: Optional[str] = None,
    question_count: Optional[int] = None,
    save_as: Optional[str] = None,
) -> Optional[OperationResult]:
    """
    Load a profile, play one interactive quest and write the profile back.

    Parameters:
        settings (Settings): Application settings (data directory, defaults).
        profile (Optional[str]): Profile to load; defaults to the most recent.
        question_count (Optional[int]): Batch size override.
        save_as (Optional[str]): Save the result as a new profile document
            instead of writing back to the loaded profile.

    Returns:
        Optional[OperationResult]: Result of the final save, or None when no
        quest could be played.
    """
    session = open_session(settings, profile)
    console.print(
        f"Playing as [bold cyan]{session.player.name}[/bold cyan] "
        f"with {len(session.deck)} flashcards."
    )

    quest = start_quest_flow(session, question_count=question_count)
    if quest is None:
        return None

    result = session.save_profile(save_as) if save_as else session.save()
    if result.ok:
        console.print(f"[green]{result.message}[/green]")
    else:
        console.print(f"[bold red]Failed to save profile: {result.message}[/bold red]")
    return result
