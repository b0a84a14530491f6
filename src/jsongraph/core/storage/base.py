"""
Storage adapter interface.

Adapters persist whole GraphState snapshots keyed by document id. Reads
must never fail on bad data: corrupt or missing snapshots load as absent.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from ..types import GraphState


class StorageAdapter(ABC):
    """Base class for GraphState persistence backends."""

    @abstractmethod
    def save_state(self, state: GraphState) -> None:
        """Persist (insert or replace) one document."""

    def save_states_batch(self, states: Iterable[GraphState]) -> int:
        """Persist several documents. Backends may override for a single transaction."""
        count = 0
        for state in states:
            self.save_state(state)
            count += 1
        return count

    @abstractmethod
    def load_state(self, document_id: str) -> Optional[GraphState]:
        """Load one document, or None if absent or unreadable."""

    @abstractmethod
    def load_all_states(self) -> List[GraphState]:
        """Load every readable document."""

    @abstractmethod
    def delete_state(self, document_id: str) -> bool:
        """Remove one document. Returns True if something was deleted."""

    @abstractmethod
    def clear(self) -> None:
        """Remove everything."""

    def get_stats(self) -> Dict[str, Any]:
        states = self.load_all_states()
        return {
            "documents": len(states),
            "total_nodes": sum(s.node_count for s in states),
            "total_edges": sum(s.edge_count for s in states),
        }

    def close(self) -> None:
        """Release resources held by the adapter."""
