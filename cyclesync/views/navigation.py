"""Navigation collaborator for view models."""

from __future__ import annotations

from typing import Protocol


class Navigator(Protocol):
    def navigate(self, path: str) -> None: ...


class RedirectNavigator:
    """Records the requested location; the route turns it into a redirect."""

    def __init__(self) -> None:
        self.location: str | None = None

    def navigate(self, path: str) -> None:
        # last call wins, like a client-side router push
        self.location = path
