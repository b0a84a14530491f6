"""
Debounced persistence.

Bursts of expansions each produce a new snapshot; only the latest one per
document needs to reach storage. Writes are coalesced and flushed after a
quiet period, or immediately when the delay is zero.
"""

import logging
import threading
from typing import Dict, Optional

from ..types import GraphState
from .base import StorageAdapter

logger = logging.getLogger(__name__)


class DebouncedWriter:
    """Coalesces saves and deletes per document id."""

    def __init__(self, storage: StorageAdapter, delay: float = 0.5):
        self.storage = storage
        self.delay = delay
        # None marks a pending delete
        self._pending: Dict[str, Optional[GraphState]] = {}
        self._lock = threading.Lock()
        # Held across a whole flush so batches reach storage in the order they were taken
        self._write_lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def schedule_save(self, state: GraphState) -> None:
        self._schedule(state.document_id, state)

    def schedule_delete(self, document_id: str) -> None:
        self._schedule(document_id, None)

    def _schedule(self, document_id: str, state: Optional[GraphState]) -> None:
        with self._lock:
            self._pending[document_id] = state
            if self.delay <= 0:
                immediate = True
            else:
                immediate = False
                if self._timer is not None:
                    self._timer.cancel()
                self._timer = threading.Timer(self.delay, self.flush)
                self._timer.daemon = True
                self._timer.start()
        if immediate:
            self.flush()

    def flush(self) -> int:
        """Write everything pending now. Returns the number of documents touched."""
        with self._write_lock:
            with self._lock:
                pending, self._pending = self._pending, {}
                if self._timer is not None:
                    self._timer.cancel()
                    self._timer = None

            written = 0
            for document_id, state in pending.items():
                try:
                    if state is None:
                        self.storage.delete_state(document_id)
                    else:
                        self.storage.save_state(state)
                    written += 1
                except Exception as e:
                    logger.error(f"Failed to persist {document_id}: {e}")
        if written:
            logger.debug(f"Persisted {written} document(s)")
        return written

    def close(self) -> None:
        self.flush()
