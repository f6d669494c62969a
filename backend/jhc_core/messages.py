"""Fire-and-forget progress and error notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressMessage:
    text: str


@dataclass(frozen=True)
class ErrorMessage:
    text: str


Message = Union[ProgressMessage, ErrorMessage]
Subscriber = Callable[[Message], None]


class Messenger:
    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []

    def register(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def unregister(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def send(self, message: Message) -> None:
        if isinstance(message, ErrorMessage):
            logger.error("%s", message.text)
        else:
            logger.info("%s", message.text)
        for subscriber in list(self._subscribers):
            subscriber(message)


class MessageLog:
    """Subscriber that keeps every message it receives."""

    def __init__(self) -> None:
        self.messages: List[Message] = []

    def __call__(self, message: Message) -> None:
        self.messages.append(message)

    @property
    def errors(self) -> List[str]:
        return [message.text for message in self.messages if isinstance(message, ErrorMessage)]

    @property
    def progress(self) -> List[str]:
        return [message.text for message in self.messages if isinstance(message, ProgressMessage)]
