"""Navigation capability consumed by the session controller.

The controller only knows *view names*; how a view is shown (router,
page switch, CLI screen) belongs to the embedding application.
"""

from __future__ import annotations

from typing import Final, Protocol, runtime_checkable


class Routes:
    LOGIN: Final[str] = "/login"
    STUDENTS: Final[str] = "/students"
    HOME: Final[str] = "/"


@runtime_checkable
class Navigator(Protocol):
    def navigate(self, view: str) -> None: ...


class RecordingNavigator:
    """Navigator that remembers where it was sent; handy for headless embedders."""

    def __init__(self, initial: str = Routes.HOME) -> None:
        self.current: str = initial
        self.history: list[str] = []

    def navigate(self, view: str) -> None:
        self.history.append(view)
        self.current = view
