"""In-memory table of per-user conversation states."""

import threading

from ..models import ConversationState


class ConversationStateStore:
    """Keyed table of active dialogs, at most one per user.

    The lock only covers dictionary access. States are immutable, so a
    state handed out by ``get`` can be read without holding it.
    """

    def __init__(self) -> None:
        self._states: dict[int, ConversationState] = {}
        self._lock = threading.Lock()

    def get(self, user_id: int) -> ConversationState | None:
        with self._lock:
            return self._states.get(user_id)

    def set(self, user_id: int, state: ConversationState) -> None:
        with self._lock:
            self._states[user_id] = state

    def delete(self, user_id: int) -> None:
        with self._lock:
            self._states.pop(user_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)
