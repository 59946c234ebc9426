"""Minimal chat robot: command listeners, dispatch and outbound sends."""
import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Pattern, Union

from processor.models import Message

logger = logging.getLogger(__name__)

Outgoing = Union[Message, str]


@dataclass(frozen=True)
class Envelope:
    """Where a message came from or is going to."""
    room: str
    user: Optional[str] = None


@dataclass
class ChatMessage:
    """Inbound chat message."""
    text: str
    envelope: Envelope


class Response:
    """Handle passed to a listener for replying to the matched message."""

    def __init__(self, robot: 'Robot', message: ChatMessage, match: 're.Match'):
        self.robot = robot
        self.message = message
        self.match = match

    def send(self, *messages: Outgoing) -> None:
        self.robot.send(self.message.envelope, *messages)


Handler = Callable[[Response], None]


@dataclass
class Listener:
    pattern: Pattern
    handler: Handler


class Robot:
    """Dispatches inbound messages to listeners and sends through an adapter."""

    def __init__(self, name: str, adapter):
        """
        Initialize the robot.

        Args:
            name: Name the robot answers to in respond() listeners
            adapter: Chat adapter providing send() and run()
        """
        self.name = name
        self.adapter = adapter
        self.listeners: List[Listener] = []

    def respond(self, pattern: str, handler: Handler) -> None:
        """
        Register a handler for messages addressed to the robot.

        The pattern is matched case-insensitively after the robot's name,
        which may be written as "name", "@name", "name:" or "name,".

        Args:
            pattern: Regular expression for the command text
            handler: Called with a Response when a message matches
        """
        address = rf"^\s*@?{re.escape(self.name)}[:,]?\s+"
        compiled = re.compile(address + rf"(?:{pattern})", re.IGNORECASE)
        self.listeners.append(Listener(pattern=compiled, handler=handler))
        logger.debug(f"Registered listener {compiled.pattern!r}")

    def receive(self, message: ChatMessage) -> bool:
        """
        Dispatch an inbound message to every matching listener.

        Args:
            message: Inbound chat message

        Returns:
            True if at least one listener matched
        """
        handled = False

        for listener in self.listeners:
            match = listener.pattern.search(message.text)
            if not match:
                continue
            handled = True
            try:
                listener.handler(Response(self, message, match))
            except Exception as e:
                logger.error(
                    f"Listener for {listener.pattern.pattern!r} failed: {e}",
                    extra={'error_type': type(e).__name__},
                    exc_info=True
                )

        return handled

    def send(self, envelope: Envelope, *messages: Outgoing) -> None:
        self.adapter.send(envelope, list(messages))

    async def run(self) -> None:
        await self.adapter.run(self)
