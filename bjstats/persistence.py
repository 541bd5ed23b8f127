"""Bankroll and lockout persistence across sessions."""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from bjstats.rules import DAY_SECONDS, Variant

logger = logging.getLogger(__name__)

KEY_TERMS_ACCEPTED = "terms_accepted"


def locked_players_key(variant: Variant | str) -> str:
    """Key holding {player_id: unlock_timestamp} for a variant."""
    return f"locked_players:{Variant(variant).value}"


def player_coins_key(variant: Variant | str) -> str:
    """Key holding the saved bankrolls for a variant."""
    return f"player_coins:{Variant(variant).value}"


class KeyValueStore(ABC):
    """Abstract key-value store holding JSON-compatible values."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Get a value, or None when missing."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Set a value."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete a value."""
        ...


class InMemoryStore(KeyValueStore):
    """In-memory store for tests and single-process use."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})

    def get(self, key: str) -> Any | None:
        """Get a value, or None when missing."""
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        """Set a value."""
        # Round-trip through JSON so callers can't share mutable state with the store
        self._data[key] = json.loads(json.dumps(value))

    def delete(self, key: str) -> None:
        """Delete a value."""
        self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """Store backed by a single JSON document on disk."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _read(self) -> dict[str, Any]:
        try:
            with self._path.open(encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable store %s: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring store %s: top level is not an object", self._path)
            return {}
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(data, fh)
        os.replace(tmp, self._path)

    def get(self, key: str) -> Any | None:
        """Get a value, or None when missing."""
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        """Set a value."""
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        """Delete a value."""
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)

    @property
    def path(self) -> Path:
        """Location of the backing file."""
        return self._path


class CoinsRecord(BaseModel):
    """Saved bankrolls for one variant."""

    timestamp: float
    coins: dict[int, int] = Field(default_factory=dict)

    def is_fresh(self, now: float, ttl: float) -> bool:
        """Records older than ``ttl`` seconds are ignored."""
        return now - self.timestamp < ttl


class LockRecord(BaseModel):
    """Unlock timestamps per player for one variant."""

    locks: dict[int, float] = Field(default_factory=dict)


class PersistenceBridge:
    """
    Reads and writes long-lived table state.

    Nothing here raises into the engine: unreadable, corrupt or expired
    records read as "nothing saved".
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        coins_ttl: float = DAY_SECONDS,
    ) -> None:
        self.store = store or InMemoryStore()
        self.coins_ttl = coins_ttl

    # Terms

    def terms_accepted(self) -> bool:
        """Check if the terms screen was accepted."""
        return self.store.get(KEY_TERMS_ACCEPTED) is True

    def accept_terms(self) -> None:
        """Remember that the terms were accepted."""
        self.store.set(KEY_TERMS_ACCEPTED, True)

    # Lockouts

    def load_locks(self, variant: Variant | str, now: float) -> dict[int, float]:
        """
        Active lockouts for a variant.

        Args:
            variant: Variant namespace
            now: Current time; locks at or before it are dropped

        Returns:
            Mapping of player id to unlock timestamp
        """
        raw = self.store.get(locked_players_key(variant))
        if raw is None:
            return {}
        try:
            record = LockRecord(locks=raw)
        except ValidationError as exc:
            logger.warning("Discarding corrupt lockouts for %s: %s", variant, exc)
            return {}
        return {pid: until for pid, until in record.locks.items() if until > now}

    def save_locks(self, variant: Variant | str, locks: dict[int, float]) -> None:
        """Replace the lockouts of a variant."""
        self.store.set(
            locked_players_key(variant),
            {str(pid): until for pid, until in locks.items()},
        )

    def lock_player(self, variant: Variant | str, player_id: int, until: float, now: float) -> None:
        """Add or extend one player's lockout."""
        locks = self.load_locks(variant, now)
        locks[player_id] = until
        self.save_locks(variant, locks)

    def clear_locks(self, variant: Variant | str) -> None:
        """Remove every lockout of a variant."""
        self.store.delete(locked_players_key(variant))

    # Bankrolls

    def load_coins(self, variant: Variant | str, now: float) -> dict[int, int] | None:
        """
        Saved bankrolls for a variant.

        Returns:
            Mapping of player id to coins, or None when nothing valid is saved
        """
        raw = self.store.get(player_coins_key(variant))
        if raw is None:
            return None
        try:
            record = CoinsRecord.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Discarding corrupt bankrolls for %s: %s", variant, exc)
            return None
        if not record.is_fresh(now, self.coins_ttl):
            logger.info("Saved bankrolls for %s expired", variant)
            return None
        if any(coins < 0 for coins in record.coins.values()):
            logger.warning("Discarding negative bankrolls for %s", variant)
            return None
        return record.coins

    def save_coins(self, variant: Variant | str, coins: dict[int, int], now: float) -> None:
        """Save bankrolls with the current timestamp."""
        record = CoinsRecord(timestamp=now, coins=coins)
        self.store.set(player_coins_key(variant), record.model_dump(mode="json"))
