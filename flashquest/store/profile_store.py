"""
JSON file persistence for players and flashcard decks.

A data directory may hold profiles in three layouts (see ProfileLayout):
the legacy root files, one folder per profile, and named profile documents.
"""

import json
import logging
import re
import time
from importlib import resources
from pathlib import Path
from typing import List, Optional, Union

from ..exceptions import (
    ProfileFormatError,
    ProfileNotFoundError,
    ProfileStoreError,
    ProfileWriteError,
)
from ..models import (
    Flashcard,
    Player,
    ProfileDocument,
    ProfileLayout,
    ProfileSummary,
)
from .marshalling import (
    document_to_record,
    flashcards_to_record,
    parse_flashcard_collection,
    parse_player,
    parse_profile_document,
    player_to_record,
    read_json,
    sanitize_profile_name,
    write_json,
)

logger = logging.getLogger(__name__)

PLAYER_FILE = "player.json"
FLASHCARDS_FILE = "flashcards.json"
LEGACY_PROFILE_ID = "default"
STARTER_DECK_RESOURCE = "data/starter_deck.json"

# A flashcards.json smaller than this is treated as empty when seeding.
_MIN_SEEDED_DECK_BYTES = 10
_RESERVED_FILES = {PLAYER_FILE, FLASHCARDS_FILE}


class ProfileStore:
    """
    Reads and writes profiles under a single data directory.

    Every public method either succeeds or raises a ProfileStoreError
    subclass; nothing is retried.
    """

    def __init__(self, data_dir: Union[str, Path]):
        """
        Parameters:
            data_dir (Union[str, Path]): Directory holding the profiles. It is
                created on the first write.
        """
        self.data_dir = Path(data_dir).expanduser()
        logger.info(f"ProfileStore initialized for data dir: {self.data_dir}")

    @property
    def root_player_path(self) -> Path:
        return self.data_dir / PLAYER_FILE

    @property
    def root_flashcards_path(self) -> Path:
        return self.data_dir / FLASHCARDS_FILE

    def ensure_data_dir(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ProfileWriteError(
                f"Could not create data directory {self.data_dir}: {e}",
                original_exception=e,
            ) from e

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_profiles(self) -> List[ProfileSummary]:
        """
        Describe every profile found in the data directory.

        Scans the legacy root player.json, each sub-folder holding a
        player.json, and each saved profile document. Entries whose record
        cannot be read are still listed under a fallback name.

        Returns:
            List[ProfileSummary]: Newest first (by file modification time).
        """
        if not self.data_dir.is_dir():
            return []

        results: List[ProfileSummary] = []

        if self.root_player_path.is_file():
            results.append(
                self._summarize_player_file(
                    self.root_player_path,
                    profile_id=LEGACY_PROFILE_ID,
                    layout=ProfileLayout.LEGACY,
                    fallback_name="Default",
                )
            )

        for child in sorted(self.data_dir.iterdir()):
            if child.is_dir():
                player_path = child / PLAYER_FILE
                if player_path.is_file():
                    results.append(
                        self._summarize_player_file(
                            player_path,
                            profile_id=child.name,
                            layout=ProfileLayout.FOLDER,
                            fallback_name=child.name,
                        )
                    )
            elif child.suffix == ".json" and child.name not in _RESERVED_FILES:
                results.append(self._summarize_document(child))

        results.sort(key=lambda s: s.last_modified or 0, reverse=True)
        return results

    def _relative(self, path: Path) -> str:
        return path.relative_to(self.data_dir).as_posix()

    @staticmethod
    def _mtime(path: Path) -> Optional[float]:
        try:
            return path.stat().st_mtime
        except OSError:
            return None

    def _summarize_player_file(
        self,
        player_path: Path,
        profile_id: str,
        layout: ProfileLayout,
        fallback_name: str,
    ) -> ProfileSummary:
        try:
            raw = read_json(player_path)
            if not isinstance(raw, dict):
                raise ProfileFormatError(f"{player_path}: not an object.")
        except ProfileStoreError as e:
            logger.warning(f"Could not read profile record {player_path}: {e}")
            return ProfileSummary(
                id=profile_id,
                display_name=fallback_name,
                layout=layout,
                path=self._relative(player_path),
            )

        return ProfileSummary(
            id=profile_id,
            display_name=_display_name(raw, fallback_name),
            layout=layout,
            path=self._relative(player_path),
            level=_first_int(raw, "currentLevel", "level"),
            total_xp=_first_int(raw, "totalXp", "total_xp"),
            last_modified=self._mtime(player_path),
        )

    def _summarize_document(self, path: Path) -> ProfileSummary:
        summary = ProfileSummary(
            id=path.stem,
            display_name=path.stem,
            layout=ProfileLayout.DOCUMENT,
            path=self._relative(path),
        )
        try:
            raw = read_json(path)
        except ProfileStoreError as e:
            logger.warning(f"Could not read profile document {path}: {e}")
            return summary

        players = raw.get("players") if isinstance(raw, dict) else None
        player = None
        if isinstance(players, list):
            player = _pick_raw_player(players, raw.get("activePlayerId"))
        if player is None:
            return summary.model_copy(update={"last_modified": self._mtime(path)})
        return summary.model_copy(
            update={
                "display_name": _display_name(player, path.stem),
                "level": _first_int(player, "currentLevel", "level"),
                "total_xp": _first_int(player, "totalXp", "total_xp"),
                "last_modified": self._mtime(path),
            }
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _folder_for(self, name: str) -> Optional[Path]:
        """Return the profile folder a name refers to, if it exists."""
        parts = [p for p in re.split(r"[\\/]", name) if p]
        if parts and parts[-1] == PLAYER_FILE:
            parts = parts[:-1]
        elif len(parts) == 1 and "." in parts[0]:
            return None
        if not parts:
            return None
        folder = self.data_dir.joinpath(*parts)
        if self._within_data_dir(folder) and (folder / PLAYER_FILE).is_file():
            return folder
        return None

    def _within_data_dir(self, path: Path) -> bool:
        try:
            path.resolve().relative_to(self.data_dir.resolve())
        except ValueError:
            return False
        return True

    def _document_path(self, name: str) -> Path:
        """
        Map a profile name to <data_dir>/<name>.json.

        Raises:
            ProfileNotFoundError: If the name points outside the data directory.
        """
        filename = name if name.endswith(".json") else f"{name}.json"
        path = self.data_dir / filename
        if not self._within_data_dir(path):
            raise ProfileNotFoundError(
                f"Profile '{name}' is outside the data directory {self.data_dir}."
            )
        return path

    def resolve_layout(self, name: str) -> ProfileLayout:
        """
        Decide which layout a profile name refers to.

        'default' and 'player.json' mean the legacy root files; a name whose
        folder holds a player.json means a folder profile; anything else is a
        profile document.
        """
        if name in (LEGACY_PROFILE_ID, PLAYER_FILE):
            return ProfileLayout.LEGACY
        if self._folder_for(name) is not None:
            return ProfileLayout.FOLDER
        return ProfileLayout.DOCUMENT

    def load_profile(self, name: str) -> ProfileDocument:
        """
        Load a profile by name or relative path.

        Parameters:
            name (str): 'default' for the legacy root files, a folder name or
                'folder/player.json', or the name of a saved document (the
                '.json' suffix is optional).

        Returns:
            ProfileDocument: For the legacy and folder layouts, a document with
            the single player and its deck (empty if the deck file is missing
            or unreadable).

        Raises:
            ProfileNotFoundError: If no such profile exists.
            ProfileFormatError: If the player record or document is invalid.
        """
        if not name:
            raise ProfileNotFoundError("No profile name provided.")

        layout = self.resolve_layout(name)
        if layout is ProfileLayout.LEGACY:
            document = self._load_player_and_deck(self.data_dir)
        elif layout is ProfileLayout.FOLDER:
            document = self._load_player_and_deck(self._folder_for(name))
        else:
            path = self._document_path(name)
            document = parse_profile_document(read_json(path), path)

        logger.info(
            f"Loaded profile '{name}' ({layout.value}): "
            f"{len(document.players)} player(s), {len(document.flashcards)} card(s)."
        )
        return document

    def _load_player_and_deck(self, directory: Path) -> ProfileDocument:
        player_path = directory / PLAYER_FILE
        player = parse_player(read_json(player_path), player_path)
        flashcards = self._load_flashcards_file(directory / FLASHCARDS_FILE)
        return ProfileDocument(
            players=[player], flashcards=flashcards, active_player_id=player.id
        )

    def load_root_flashcards(self) -> List[Flashcard]:
        """Load the legacy root deck on its own (empty if missing or unreadable)."""
        return self._load_flashcards_file(self.root_flashcards_path)

    def has_document(self, name: str) -> bool:
        """True if a profile document with this (sanitized) name exists."""
        return self._document_path(sanitize_profile_name(name)).is_file()

    def _load_flashcards_file(self, path: Path) -> List[Flashcard]:
        if not path.is_file():
            return []
        try:
            return parse_flashcard_collection(read_json(path), path)
        except ProfileFormatError as e:
            logger.warning(f"Ignoring unreadable deck {path}: {e}")
            return []

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def save_profile(self, name: str, document: ProfileDocument) -> str:
        """
        Save a profile document as <data_dir>/<name>.json.

        Returns:
            str: The sanitized name the document was saved under.

        Raises:
            ProfileWriteError: If the file cannot be written.
        """
        safe_name = sanitize_profile_name(name)
        self.ensure_data_dir()
        path = self._document_path(safe_name)
        write_json(path, document_to_record(document))
        logger.info(f"Saved profile document {path}")
        return safe_name

    def write_profile(self, name: str, document: ProfileDocument) -> str:
        """
        Write a profile back in the layout its name resolves to.

        The legacy and folder layouts get their player.json (active player)
        and flashcards.json rewritten; any other name is saved as a document.

        Returns:
            str: The name the profile can be loaded back with.
        """
        layout = self.resolve_layout(name)
        if layout is ProfileLayout.DOCUMENT:
            return self.save_profile(name, document)

        directory = (
            self.data_dir
            if layout is ProfileLayout.LEGACY
            else self._folder_for(name)
        )
        self.ensure_data_dir()
        player = document.active_player()
        if player is not None:
            write_json(directory / PLAYER_FILE, player_to_record(player))
        write_json(
            directory / FLASHCARDS_FILE, flashcards_to_record(document.flashcards)
        )
        logger.info(f"Wrote {layout.value} profile '{name}' in {directory}")
        return LEGACY_PROFILE_ID if layout is ProfileLayout.LEGACY else name

    def save_root_player(self, player: Player) -> None:
        """Overwrite the legacy root player.json with the given player."""
        self.ensure_data_dir()
        write_json(self.root_player_path, player_to_record(player))
        logger.debug(f"Root player record updated for '{player.name}'")

    def delete_profile(self, name: str) -> None:
        """
        Delete the saved profile document <data_dir>/<name>.json.

        Raises:
            ProfileNotFoundError: If there is no such document.
            ProfileWriteError: If the file cannot be removed.
        """
        path = self._document_path(name)
        try:
            path.unlink()
        except FileNotFoundError:
            raise ProfileNotFoundError(f"Profile not found: {path}") from None
        except OSError as e:
            raise ProfileWriteError(
                f"Could not delete {path}: {e}", original_exception=e
            ) from e
        logger.info(f"Deleted profile document {path}")

    def import_profile(
        self, source: Union[str, Path], name: Optional[str] = None
    ) -> str:
        """
        Validate a profile document from any path and save it into the store.

        Parameters:
            source: Path of the JSON profile document to import.
            name: Name to save under. Defaults to the document's profileName
                or 'imported-<epoch ms>'.

        Returns:
            str: The sanitized name the profile was saved under.
        """
        source_path = Path(source).expanduser()
        document = parse_profile_document(read_json(source_path), source_path)
        target = name or document.profile_name or f"imported-{int(time.time() * 1000)}"
        return self.save_profile(target, document)

    def seed_flashcards_if_needed(self, source: Optional[Path] = None) -> bool:
        """
        Install the starter deck as the root flashcards.json on first use.

        Seeding happens when the file is missing or too small to hold any
        cards; an existing deck is never overwritten.

        Parameters:
            source: Deck file to copy. Defaults to the bundled starter deck.

        Returns:
            bool: True if the deck file was written.
        """
        target = self.root_flashcards_path
        if target.is_file():
            size = target.stat().st_size
            if size >= _MIN_SEEDED_DECK_BYTES:
                return False

        if source is not None:
            try:
                content = Path(source).read_bytes()
            except OSError as e:
                raise ProfileNotFoundError(
                    f"Seed deck not readable: {source}", original_exception=e
                ) from e
        else:
            content = _starter_deck_bytes()

        self.ensure_data_dir()
        try:
            target.write_bytes(content)
        except OSError as e:
            raise ProfileWriteError(
                f"Could not seed {target}: {e}", original_exception=e
            ) from e
        logger.info(f"Seeded flashcards to {target}")
        return True


def _first_int(raw: dict, *keys: str) -> Optional[int]:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _display_name(raw: dict, fallback: str) -> str:
    name = raw.get("name")
    return name if isinstance(name, str) and name else fallback


def _pick_raw_player(players: list, active_id: Optional[str]) -> Optional[dict]:
    candidates = [p for p in players if isinstance(p, dict)]
    if not candidates:
        return None
    for player in candidates:
        if active_id is not None and player.get("id") == active_id:
            return player
    return candidates[0]


def _starter_deck_bytes() -> bytes:
    return resources.files("flashquest").joinpath(STARTER_DECK_RESOURCE).read_bytes()


def load_starter_deck() -> List[Flashcard]:
    """Return fresh Flashcard objects for the bundled starter deck."""
    data = json.loads(_starter_deck_bytes().decode("utf-8"))
    return parse_flashcard_collection(data, Path(STARTER_DECK_RESOURCE))
