"""In-process registry of live card sessions."""

from threading import Lock
from typing import Dict, Optional, Tuple
import logging
import uuid

from oyster.exceptions import CardNotFoundError
from oyster.services.card_session import CardSession

logger = logging.getLogger(__name__)


class CardRegistry:
    """
    Keeps card sessions addressable by id for the lifetime of the process.
    Cards are not persisted; a restart starts with an empty registry.
    """

    def __init__(self):
        self._cards: Dict[str, CardSession] = {}
        self._lock = Lock()

    def create(self, initial_balance=0, **session_kwargs) -> Tuple[str, CardSession]:
        """Issue a new card and return its id together with the session."""
        session = CardSession(initial_balance, **session_kwargs)
        card_id = uuid.uuid4().hex
        with self._lock:
            self._cards[card_id] = session
        logger.info("Issued card %s with balance £%s", card_id, session.balance)
        return card_id, session

    def get(self, card_id: str) -> CardSession:
        with self._lock:
            session = self._cards.get(card_id)
        if session is None:
            raise CardNotFoundError(card_id)
        return session

    def remove(self, card_id: str):
        with self._lock:
            if self._cards.pop(card_id, None) is None:
                raise CardNotFoundError(card_id)
        logger.info("Removed card %s", card_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cards)


_registry: Optional[CardRegistry] = None


def get_card_registry() -> CardRegistry:
    """Get singleton card registry instance."""
    global _registry
    if _registry is None:
        _registry = CardRegistry()
    return _registry
