"""Notification sink: transient toasts shown over a view."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = "default"  # default | destructive


class NotificationSink(Protocol):
    def notify(self, title: str, description: str, variant: str = "default") -> None: ...


@dataclass
class ToastCollector:
    """Collects toasts raised while handling one request, for rendering."""

    toasts: list[Notification] = field(default_factory=list)

    def notify(self, title: str, description: str, variant: str = "default") -> None:
        self.toasts.append(Notification(title, description, variant))
