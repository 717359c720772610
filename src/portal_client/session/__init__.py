from __future__ import annotations

from .controller import SessionController, SessionState  # noqa: F401
from .navigation import Navigator, RecordingNavigator, Routes  # noqa: F401

__all__ = ["SessionController", "SessionState", "Navigator", "RecordingNavigator", "Routes"]
