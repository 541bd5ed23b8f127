"""Session management: signed session ids mapped to live tables."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable
from uuid import uuid4

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from bjstats.game import AsyncioScheduler, BlackjackTable, GameEvent, Scheduler
from bjstats.persistence import InMemoryStore, JsonFileStore, KeyValueStore, PersistenceBridge
from bjstats.rules import TableConfig
from config import TableDefaults, config

logger = logging.getLogger(__name__)

EventListener = Callable[[GameEvent], None]


class SessionSigner:
    """Sign and verify session IDs using itsdangerous."""

    def __init__(self, secret_key: str | None = None) -> None:
        """Initialize the signer with a secret key."""
        self._secret_key = secret_key or config.security.secret_key
        self._serializer = URLSafeTimedSerializer(self._secret_key)

    def sign(self, session_id: str) -> str:
        """Create a signed token from a session ID."""
        return self._serializer.dumps(session_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Verify and extract session_id from a signed token.

        Args:
            token: The signed token to verify
            max_age: Maximum age in seconds (defaults to session_ttl)

        Returns:
            The session ID if valid, None otherwise
        """
        max_age = max_age or config.session_ttl
        try:
            return self._serializer.loads(token, max_age=max_age)
        except (BadSignature, SignatureExpired):
            return None


# Global signer instance
_session_signer: SessionSigner | None = None


def get_session_signer() -> SessionSigner:
    """Get or create the session signer."""
    global _session_signer
    if _session_signer is None:
        _session_signer = SessionSigner()
    return _session_signer


def extract_session_id(token: str) -> str | None:
    """
    Extract the raw session ID from a signed token.

    Args:
        token: The signed session token

    Returns:
        The raw session ID if valid, None otherwise
    """
    signer = get_session_signer()
    return signer.unsign(token)


@dataclass
class TableSession:
    """One client's table plus the lock serializing commands against it."""

    session_id: str
    table: BlackjackTable
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    created_at: float = field(default_factory=time.time)
    listeners: list[EventListener] = field(default_factory=list)

    def dispatch(self, event: GameEvent) -> None:
        """Forward a table event to every listener (WebSocket queues)."""
        for listener in list(self.listeners):
            listener(event)

    def replace_table(self, table: BlackjackTable) -> None:
        """Swap in a new table, dropping any steps the old one had pending."""
        self.table.reset_to_setup()
        self.table = table
        table.subscribe(self.dispatch)


class TableRegistry:
    """
    Live tables keyed by raw session id.

    Bankrolls and lockouts live in the shared persistence bridge, so a new
    table for the same variant picks them up again.
    """

    def __init__(
        self,
        persistence: PersistenceBridge,
        defaults: TableDefaults | None = None,
        scheduler_factory: Callable[[], Scheduler] = AsyncioScheduler,
    ) -> None:
        self.persistence = persistence
        self.defaults = defaults or config.table
        self._scheduler_factory = scheduler_factory
        self._sessions: dict[str, TableSession] = {}

    def build_table(self, table_config: TableConfig | None = None) -> BlackjackTable:
        """Create a table wired to the shared persistence."""
        table_config = table_config or self.table_config()
        return BlackjackTable(
            table_config,
            scheduler=self._scheduler_factory(),
            persistence=self.persistence,
        )

    def table_config(self, **overrides) -> TableConfig:
        """Table settings with API pacing applied."""
        settings = {
            "ai_delay": self.defaults.ai_delay,
            "dealer_delay": self.defaults.dealer_delay,
            "reshuffle_delay": self.defaults.reshuffle_delay,
            "replay_history": self.defaults.replay_history,
            "lockout_seconds": config.persistence.lockout_seconds,
            "coins_ttl_seconds": config.persistence.coins_ttl_seconds,
        }
        settings.update(overrides)
        return TableConfig(**settings)

    def create(self) -> tuple[str, TableSession]:
        """
        Open a session with a table in setup.

        Returns:
            The signed session token and the session
        """
        session_id = str(uuid4())
        table = self.build_table()
        session = TableSession(session_id=session_id, table=table)
        table.subscribe(session.dispatch)
        self._sessions[session_id] = session
        logger.info("Opened session %s", session_id)
        return get_session_signer().sign(session_id), session

    def get(self, session_id: str) -> TableSession | None:
        """Look up a session by raw id."""
        return self._sessions.get(session_id)

    def close(self, session_id: str) -> None:
        """Drop a session and cancel its pending steps."""
        session = self._sessions.pop(session_id, None)
        if session is not None:
            session.table.reset_to_setup()

    def __len__(self) -> int:
        return len(self._sessions)


def build_store(path: str | None) -> KeyValueStore:
    """JSON file store when a path is configured, otherwise in-memory."""
    if path:
        return JsonFileStore(path)
    return InMemoryStore()


# Global registry instance
_registry: TableRegistry | None = None


def get_registry() -> TableRegistry:
    """Get or create the table registry."""
    global _registry
    if _registry is None:
        persistence = PersistenceBridge(
            build_store(config.persistence.store_path),
            coins_ttl=config.persistence.coins_ttl_seconds,
        )
        _registry = TableRegistry(persistence)
    return _registry


def set_registry(registry: TableRegistry | None) -> None:
    """Replace the global registry (None to rebuild from config)."""
    global _registry
    _registry = registry
