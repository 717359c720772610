"""Credential storage: in-memory value plus a best-effort fallback medium.

This module introduces a *narrow* persistence interface
(:class:`SessionMedium`, shaped like the browser's ``sessionStorage``) with
two implementations, and the :class:`CredentialStore` that owns the current
bearer token.  The design follows these goals:

* **Memory first** – the in-memory value is the source of truth; the medium
  only helps survive a reload of the embedding application.
* **Best effort** – medium I/O failures (disabled storage, full disk,
  permission errors) are logged and swallowed, the store keeps working from
  memory alone.
* **Atomicity** – the disk medium writes via *temp-file + os.replace*.
* **Self-invalidation** – an expired credential is treated as absent and
  cleared on the next read.

Environment variables
---------------------
PORTAL_SESSION_DIR
    Base directory used by :class:`DiskSessionMedium`.  Defaults to
    ``~/.portal-client/sessions`` when unset.  Session files are created
    with mode ``0600``.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

from portal_client.core.clock import Clock, default_clock, format_timestamp, parse_timestamp
from portal_client.core.models import Credential
from portal_client.utils.logging import mask_sensitive

_LOG = logging.getLogger("portal-client.core.store")

TOKEN_KEY: Final[str] = "auth_token"
EXPIRY_KEY: Final[str] = "token_expiry"

# --------------------------------------------------------------------------- #
# helpers                                                                     #
# --------------------------------------------------------------------------- #


def _slug(text: str, max_len: int = 64) -> str:
    """Filesystem-safe slug for session identifiers."""
    text = (text or "").strip().lower()
    text = re.sub(r"[^a-z0-9._-]+", "-", text)
    text = re.sub(r"-{2,}", "-", text).strip("-")
    return text[:max_len] or "default"


def _atomic_write(path: Path, data: dict) -> None:
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    os.chmod(tmp, 0o600)  # O_CREAT mode is ignored for an existing file
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        json.dump(data, fh, separators=(",", ":"), sort_keys=True)
    os.replace(tmp, path)  # atomic on POSIX


# --------------------------------------------------------------------------- #
# fallback media                                                              #
# --------------------------------------------------------------------------- #


@runtime_checkable
class SessionMedium(Protocol):
    """Key-value store scoped to one application session."""

    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class MemoryMedium:
    """Dict-backed medium; lives exactly as long as the process."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class DiskSessionMedium:
    """JSON-file medium, one file per session identifier.

    The file survives restarts of the embedding application but is meant to
    be discarded with the session (see :meth:`destroy`).
    """

    def __init__(
        self,
        session_id: str = "default",
        base_dir: str | os.PathLike | None = None,
    ) -> None:
        self.base_dir = Path(
            base_dir
            or os.getenv("PORTAL_SESSION_DIR")
            or Path.home() / ".portal-client" / "sessions"
        ).expanduser()
        self.path = self.base_dir / f"{_slug(session_id)}.json"

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        with self.path.open(encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"corrupt session file {self.path}")
        return {str(k): str(v) for k, v in data.items()}

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        _atomic_write(self.path, data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key not in data:
            return
        del data[key]
        _atomic_write(self.path, data)

    def destroy(self) -> None:
        """Delete the backing file (end of the session)."""
        self.path.unlink(missing_ok=True)


# --------------------------------------------------------------------------- #
# credential store                                                            #
# --------------------------------------------------------------------------- #


class CredentialStore:
    """Sole owner of the current :class:`Credential`.

    Consumers never keep a copy of the token; they call :meth:`get` on every
    use.  All operations are synchronous, so concurrent coroutines observe
    last-write-wins semantics without locking.
    """

    def __init__(
        self,
        medium: SessionMedium | None = None,
        *,
        clock: Clock = default_clock,
    ) -> None:
        self.medium: SessionMedium | None = medium
        self._clock = clock
        self._token: str | None = None
        self._expires_at: float | None = None
        # The medium is consulted at most once, before the first set/clear.
        self._rehydrated = medium is None

    # ------------------------------------------------------------------ #
    # public API                                                         #
    # ------------------------------------------------------------------ #
    def set(self, token: str, expires_at: float | None = None) -> None:
        """Store *token* as the current credential; persistence is best effort."""
        if not token:
            raise ValueError("token must be a non-empty string")
        self._token = token
        self._expires_at = expires_at
        self._rehydrated = True
        self._medium_write(TOKEN_KEY, token)
        if expires_at is not None:
            self._medium_write(EXPIRY_KEY, format_timestamp(expires_at))
        else:
            self._medium_remove(EXPIRY_KEY)
        _LOG.debug(
            "Stored credential token=%s expires_at=%s",
            mask_sensitive(token),
            format_timestamp(expires_at) if expires_at is not None else "never",
        )

    def get(self) -> str | None:
        """Return the current token, or ``None`` when absent or expired."""
        if self.is_expired():
            _LOG.info("Credential expired; clearing store")
            self.clear()
            return None
        self._rehydrate()
        return self._token

    def clear(self) -> None:
        """Remove the credential from memory and the medium; idempotent."""
        self._token = None
        self._expires_at = None
        self._rehydrated = True
        self._medium_remove(TOKEN_KEY)
        self._medium_remove(EXPIRY_KEY)

    def is_expired(self) -> bool:
        """True iff an expiry is recorded and *now* is at or past it."""
        self._rehydrate()
        if self._expires_at is None:
            return False
        return self._clock() >= self._expires_at

    def expiry(self) -> float | None:
        self._rehydrate()
        return self._expires_at

    def credential(self) -> Credential | None:
        """Snapshot of the valid credential, for inspection only."""
        token = self.get()
        if token is None:
            return None
        return Credential(token=token, expires_at=self._expires_at)

    # ------------------------------------------------------------------ #
    # medium helpers                                                     #
    # ------------------------------------------------------------------ #
    def _rehydrate(self) -> None:
        if self._rehydrated or self._token is not None:
            return
        self._rehydrated = True
        token = self._medium_read(TOKEN_KEY)
        if not token:
            return
        raw_expiry = self._medium_read(EXPIRY_KEY)
        expires_at: float | None = None
        if raw_expiry:
            try:
                expires_at = parse_timestamp(raw_expiry)
            except ValueError:
                _LOG.warning("Ignoring persisted credential with unreadable expiry")
                return
        self._token = token
        self._expires_at = expires_at
        _LOG.debug("Rehydrated credential token=%s", mask_sensitive(token))

    def _medium_read(self, key: str) -> str | None:
        if self.medium is None:
            return None
        try:
            return self.medium.get_item(key)
        except Exception as exc:  # noqa: BLE001 – storage may be disabled
            _LOG.warning("Failed to read %s from session medium: %s", key, exc)
            return None

    def _medium_write(self, key: str, value: str) -> None:
        if self.medium is None:
            return
        try:
            self.medium.set_item(key, value)
        except Exception as exc:  # noqa: BLE001
            _LOG.warning("Failed to store %s in session medium: %s", key, exc)

    def _medium_remove(self, key: str) -> None:
        if self.medium is None:
            return
        try:
            self.medium.remove_item(key)
        except Exception as exc:  # noqa: BLE001
            _LOG.warning("Failed to remove %s from session medium: %s", key, exc)
