"""
In-memory storage adapter.

Keeps serialized entries rather than live objects so a save/load cycle goes
through the same snapshot codec as the durable backends.
"""

import json
from typing import Dict, List, Optional

from ..types import GraphState
from .base import StorageAdapter
from .snapshot import dump_state, load_state, load_states


class MemoryStorage(StorageAdapter):
    """Fast ephemeral storage for tests and throwaway sessions."""

    def __init__(self):
        self._entries: Dict[str, str] = {}
        self.save_count = 0

    def save_state(self, state: GraphState) -> None:
        self._entries[state.document_id] = json.dumps(dump_state(state))
        self.save_count += 1

    def load_state(self, document_id: str) -> Optional[GraphState]:
        raw = self._entries.get(document_id)
        if raw is None:
            return None
        try:
            return load_state(json.loads(raw))
        except ValueError:
            return None

    def load_all_states(self) -> List[GraphState]:
        return load_states([json.loads(raw) for raw in self._entries.values()])

    def delete_state(self, document_id: str) -> bool:
        return self._entries.pop(document_id, None) is not None

    def clear(self) -> None:
        self._entries.clear()
