"""Save/Load of a narrative session's sequence state.

Writes versioned JSON save files holding every directive's selection state
and, when the session uses a random.Random, the generator state so that
future shuffles replay identically after a restore.
"""
from __future__ import annotations
import json
import logging
import random
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema

from ..config import get_saves_dir
from .validator import validate_save_file, validate_semantics

# Save format version - increment when making breaking changes
SAVE_VERSION = 1


class SaveError(Exception):
    """Exception raised for save/load operations."""
    pass


def _saves_dir(saves_dir=None) -> Path:
    path = Path(saves_dir) if saves_dir is not None else get_saves_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def export_rng_state(rng) -> Optional[List[Any]]:
    """Return a JSON-friendly copy of a random.Random state (None for other sources)."""
    if not isinstance(rng, random.Random):
        return None
    version, internal, gauss_next = rng.getstate()
    return [version, list(internal), gauss_next]


def restore_rng_state(rng, data: Optional[List[Any]]) -> None:
    if data is None or not isinstance(rng, random.Random):
        return
    version, internal, gauss_next = data
    rng.setstate((version, tuple(internal), gauss_next))


def serialize_session(session, slot_name: str = "quicksave") -> Dict[str, Any]:
    """Convert a session's persistent state to a serializable dictionary."""
    return {
        "version": SAVE_VERSION,
        "slot": slot_name,
        "saved_at": datetime.now().isoformat(),
        "sequences": session.export_state(),
        "rng_state": export_rng_state(session.rng),
    }


def deserialize_into(session, data: Dict[str, Any]) -> None:
    """Restore a session from a save dictionary.

    Raises:
        SaveError: If the data is from a newer format or fails validation
    """
    version = data.get("version", 0) if isinstance(data, dict) else 0
    if isinstance(version, int) and version > SAVE_VERSION:
        raise SaveError(f"Save file version {version} is newer than supported version {SAVE_VERSION}")
    try:
        validate_save_file(data)
    except jsonschema.ValidationError as e:
        logging.warning(f"Rejected sequence save data: {e.message}")
        raise SaveError(f"Invalid save data: {e.message}") from e
    ok, err = validate_semantics(data["sequences"])
    if not ok:
        logging.warning(f"Rejected sequence save data: {err}")
        raise SaveError(f"Invalid save data: {err}")

    try:
        restore_rng_state(session.rng, data.get("rng_state"))
    except (TypeError, ValueError) as e:
        raise SaveError(f"Invalid RNG state: {e}") from e
    session.restore_state(data["sequences"])


def save_session(session, slot_name: str = "quicksave", saves_dir=None) -> str:
    """Save session state to a named slot.

    Args:
        session: NarrativeSession to save
        slot_name: Name of the save slot (default: "quicksave")
        saves_dir: Directory override (default: config.get_saves_dir())

    Returns:
        Path to the save file

    Raises:
        SaveError: If save operation fails
    """
    try:
        save_data = serialize_session(session, slot_name)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        filepath = _saves_dir(saves_dir) / f"{slot_name}_{timestamp}.json"

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(save_data, f, indent=2, ensure_ascii=False)

        logging.info(f"Saved {len(save_data['sequences'])} sequence states to {filepath}")
        return str(filepath)

    except (OSError, TypeError, ValueError) as e:
        raise SaveError(f"Failed to save session: {e}") from e


def load_session(session, slot_name: str = None, filepath: str = None, saves_dir=None) -> None:
    """Load session state from a save file.

    Args:
        session: NarrativeSession to restore into
        slot_name: Name of save slot to load latest from
        filepath: Specific file path to load from
        saves_dir: Directory override (default: config.get_saves_dir())

    Raises:
        SaveError: If load operation fails
    """
    if filepath:
        load_path = Path(filepath)
    elif slot_name:
        saves = list(_saves_dir(saves_dir).glob(f"{slot_name}_*.json"))
        if not saves:
            raise SaveError(f"No saves found for slot '{slot_name}'")
        # Newest first; names embed a sortable timestamp
        saves.sort(key=lambda x: x.name, reverse=True)
        load_path = saves[0]
    else:
        raise SaveError("Must specify either slot_name or filepath")

    if not load_path.exists():
        raise SaveError(f"Save file not found: {load_path}")

    try:
        with open(load_path, 'r', encoding='utf-8') as f:
            save_data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise SaveError(f"Failed to load session: {e}") from e

    deserialize_into(session, save_data)
    logging.info(f"Loaded sequence states from {load_path}")


def list_saves(saves_dir=None) -> List[Dict[str, Any]]:
    """List all available save files with metadata.

    Returns:
        List of save file info dictionaries, newest first
    """
    saves = []
    for save_file in _saves_dir(saves_dir).glob("*.json"):
        try:
            with open(save_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError):
            # Skip corrupted save files
            continue
        saves.append({
            "filename": save_file.name,
            "filepath": str(save_file),
            "slot_name": data.get("slot", "unknown"),
            "date_saved": data.get("saved_at", "Unknown"),
            "version": data.get("version", 0),
            "sequence_count": len(data.get("sequences", {})),
        })

    saves.sort(key=lambda x: x["date_saved"], reverse=True)
    return saves


def delete_save(slot_name: str = None, filepath: str = None, saves_dir=None) -> bool:
    """Delete save files.

    Args:
        slot_name: Delete all saves for this slot
        filepath: Delete specific save file

    Returns:
        True if something was deleted

    Raises:
        SaveError: If deletion fails
    """
    try:
        if filepath:
            Path(filepath).unlink()
            return True
        elif slot_name:
            saves = list(_saves_dir(saves_dir).glob(f"{slot_name}_*.json"))
            for save_file in saves:
                save_file.unlink()
            return len(saves) > 0
        else:
            raise SaveError("Must specify either slot_name or filepath")
    except OSError as e:
        raise SaveError(f"Failed to delete save: {e}") from e
