"""
JSON file storage adapter.

Stores the whole workspace as one JSON array in the persisted snapshot
layout. Writes go to a temporary sibling and are moved into place so a
crash mid-write never leaves a truncated file behind.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..types import GraphState
from .base import StorageAdapter
from .snapshot import dump_state, load_state, load_states

logger = logging.getLogger(__name__)


class JsonFileStorage(StorageAdapter):
    """Single-file persistence, convenient for sharing or inspecting state by hand."""

    def __init__(self, file_path: Path):
        self.file_path = Path(file_path)

    def _read_entries(self) -> List[Dict[str, Any]]:
        if not self.file_path.exists():
            return []
        try:
            data = json.loads(self.file_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read {self.file_path}, starting empty: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"Ignoring {self.file_path}: expected a list of documents")
            return []
        return [entry for entry in data if isinstance(entry, dict)]

    def _write_entries(self, entries: List[Dict[str, Any]]) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.file_path.with_suffix(self.file_path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(entries, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, self.file_path)

    def save_state(self, state: GraphState) -> None:
        self.save_states_batch([state])

    def save_states_batch(self, states: Iterable[GraphState]) -> int:
        states = list(states)
        if not states:
            return 0
        replaced = {state.document_id: dump_state(state) for state in states}
        entries = [
            replaced.pop(entry.get("documentId"), entry)
            for entry in self._read_entries()
        ]
        entries.extend(replaced.values())
        self._write_entries(entries)
        return len(states)

    def load_state(self, document_id: str) -> Optional[GraphState]:
        for entry in self._read_entries():
            if entry.get("documentId") == document_id:
                try:
                    return load_state(entry)
                except ValueError as e:
                    logger.warning(f"Corrupt snapshot for {document_id}: {e}")
                    return None
        return None

    def load_all_states(self) -> List[GraphState]:
        return load_states(self._read_entries())

    def delete_state(self, document_id: str) -> bool:
        entries = self._read_entries()
        kept = [entry for entry in entries if entry.get("documentId") != document_id]
        if len(kept) == len(entries):
            return False
        self._write_entries(kept)
        return True

    def clear(self) -> None:
        self._write_entries([])
