"""
Session store for customer conversations.

Sessions live in process memory for the lifetime of the bot: there is no
expiry and nothing survives a restart. Running more than one bot process
needs a shared implementation of ``SessionStore``.
"""
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from pizzabot.formatters import normalize_phone
from pizzabot.state import Session

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Mapping from conversation id (customer phone) to its session."""

    @abstractmethod
    def get(self, conversation_id: str) -> Optional[Session]:
        pass

    @abstractmethod
    def get_or_create(self, conversation_id: str, **defaults) -> Session:
        pass

    @abstractmethod
    def set(self, conversation_id: str, session: Session) -> None:
        pass

    @abstractmethod
    def sessions(self) -> List[Session]:
        pass

    @abstractmethod
    def lock(self, conversation_id: str):
        """Context manager serializing message processing for one conversation."""
        pass


class InMemorySessionStore(SessionStore):
    """Single-process store; one lock per conversation, none shared across conversations."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def get(self, conversation_id: str) -> Optional[Session]:
        return self._sessions.get(conversation_id)

    def get_or_create(self, conversation_id: str, **defaults) -> Session:
        with self._guard:
            session = self._sessions.get(conversation_id)
            if session is None:
                session = Session(conversation_id=conversation_id, **defaults)
                self._sessions[conversation_id] = session
                logger.info(f"🆕 New session for {conversation_id}")
            return session

    def set(self, conversation_id: str, session: Session) -> None:
        with self._guard:
            self._sessions[conversation_id] = session

    def sessions(self) -> List[Session]:
        with self._guard:
            return list(self._sessions.values())

    @contextmanager
    def lock(self, conversation_id: str) -> Iterator[None]:
        with self._guard:
            key_lock = self._locks.setdefault(conversation_id, threading.RLock())
        with key_lock:
            yield

    def __len__(self) -> int:
        return len(self._sessions)


class ThreadDirectory:
    """
    Resolves a phone number to the transport thread of a known conversation.

    Used for out-of-band notifications, where the backend only knows the
    customer's phone number.
    """

    def __init__(self, store: SessionStore, country_code: str = "55"):
        self.store = store
        self.country_code = country_code

    def resolve_thread(self, phone: str) -> Optional[str]:
        wanted = normalize_phone(phone, self.country_code)
        if not wanted:
            return None

        session = self.store.get(wanted)
        if session and session.thread_id:
            return session.thread_id

        # Partial matches only for numbers long enough to be unambiguous
        if len(wanted) < 8:
            return None
        for session in self.store.sessions():
            key = session.conversation_id
            if not key or not session.thread_id:
                continue
            if key.endswith(wanted) or wanted.endswith(key):
                return session.thread_id
        return None
