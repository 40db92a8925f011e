"""
Utility functions for data marshalling between Pydantic models and the JSON files on disk.
This module keeps the profile store free of the details of the record formats.
"""

import json
import logging
import re
import time
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List

from pydantic import ValidationError

from ..exceptions import ProfileFormatError, ProfileNotFoundError, ProfileWriteError
from ..models import Flashcard, Player, ProfileDocument

logger = logging.getLogger(__name__)

# Characters that are not allowed in a profile file name.
_UNSAFE_NAME_CHARS = re.compile(r'[\\/:*?"<>|]')


class CollectionShape(Enum):
    """The two accepted shapes of a flashcards.json file."""

    WRAPPED = "wrapped"  # {"flashcards": [...]}
    BARE = "bare"  # [...]


def read_json(path: Path) -> Any:
    """
    Read and decode a JSON file.

    Raises:
        ProfileNotFoundError: If the file does not exist.
        ProfileFormatError: If the file cannot be read or is not valid JSON.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ProfileNotFoundError(f"File not found: {path}") from None
    except OSError as e:
        raise ProfileFormatError(
            f"Could not read {path}: {e}", original_exception=e
        ) from e

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ProfileFormatError(
            f"Invalid JSON in {path}: {e}", original_exception=e
        ) from e


def write_json(path: Path, payload: Any) -> None:
    """
    Write a JSON payload with 2-space indentation, creating parent directories.

    Raises:
        ProfileWriteError: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
        )
    except OSError as e:
        raise ProfileWriteError(
            f"Could not write {path}: {e}", original_exception=e
        ) from e


def _validation_message(e: ValidationError) -> str:
    details = e.errors()[0]
    field = ".".join(map(str, details["loc"])) or "<root>"
    return f"field '{field}': {details['msg']}"


def parse_player(data: Any, source: Path) -> Player:
    """
    Create a Player from a decoded player record.

    Raises:
        ProfileFormatError: If the record does not validate.
    """
    if not isinstance(data, dict):
        raise ProfileFormatError(f"{source}: a player record must be an object.")
    try:
        return Player.model_validate(data)
    except ValidationError as e:
        raise ProfileFormatError(
            f"{source}: invalid player record, {_validation_message(e)}",
            original_exception=e,
        ) from e


def detect_collection_shape(data: Any) -> CollectionShape:
    """
    Tell which flashcards.json shape a decoded document uses.

    Raises:
        ProfileFormatError: If it is neither a bare list nor a wrapper object.
    """
    if isinstance(data, list):
        return CollectionShape.BARE
    if isinstance(data, dict) and isinstance(data.get("flashcards"), list):
        return CollectionShape.WRAPPED
    raise ProfileFormatError(
        "Flashcard collection must be a list or an object with a 'flashcards' list."
    )


def parse_flashcard_collection(data: Any, source: Path) -> List[Flashcard]:
    """
    Create Flashcards from a decoded flashcards.json document of either shape.

    Raises:
        ProfileFormatError: If the shape is unknown or a card does not validate.
    """
    try:
        shape = detect_collection_shape(data)
    except ProfileFormatError as e:
        raise ProfileFormatError(f"{source}: {e}") from e

    records = data if shape is CollectionShape.BARE else data["flashcards"]
    try:
        return [Flashcard.model_validate(record) for record in records]
    except ValidationError as e:
        raise ProfileFormatError(
            f"{source}: invalid flashcard record, {_validation_message(e)}",
            original_exception=e,
        ) from e


def parse_profile_document(data: Any, source: Path) -> ProfileDocument:
    """
    Create a ProfileDocument from a decoded profile file.

    Raises:
        ProfileFormatError: If the document does not validate.
    """
    if not isinstance(data, dict):
        raise ProfileFormatError(
            f"{source}: a profile document must be an object."
        )
    try:
        return ProfileDocument.model_validate(data)
    except ValidationError as e:
        raise ProfileFormatError(
            f"{source}: invalid profile document, {_validation_message(e)}",
            original_exception=e,
        ) from e


def player_to_record(player: Player) -> Dict[str, Any]:
    """Serialize a Player to its camelCase JSON record."""
    return player.model_dump(mode="json", by_alias=True)


def flashcards_to_record(flashcards: List[Flashcard]) -> Dict[str, Any]:
    """Serialize a deck to the wrapped flashcards.json shape."""
    return {
        "flashcards": [
            card.model_dump(mode="json", by_alias=True) for card in flashcards
        ]
    }


def document_to_record(document: ProfileDocument) -> Dict[str, Any]:
    """Serialize a ProfileDocument, omitting unset optional keys."""
    return document.model_dump(mode="json", by_alias=True, exclude_none=True)


def sanitize_profile_name(name: Any) -> str:
    """
    Turn a user supplied name into a safe file stem.

    Path separators and other reserved characters become '-'. A blank name
    yields 'profile-<epoch ms>'.
    """
    safe = _UNSAFE_NAME_CHARS.sub("-", str(name).strip()) if name else ""
    if not safe:
        safe = f"profile-{int(time.time() * 1000)}"
    return safe
