"""Chat adapters connecting the robot to a terminal or to Slack."""
import asyncio
import logging
import sys
from typing import List, TextIO

import requests
import uvicorn

from chat.robot import ChatMessage, Envelope, Outgoing
from chat.slack_events import create_app
from processor.errors import ChatError
from processor.models import Message

logger = logging.getLogger(__name__)


def render_text(message: Outgoing) -> str:
    """
    Render a message as plain text.

    Args:
        message: Message object or plain string

    Returns:
        Multi-line text with one line per attachment field
    """
    if isinstance(message, str):
        return message

    lines = [message.text]
    for message_field in message.fields:
        value = message_field.value.replace('\n', ' / ')
        lines.append(f"  {message_field.title}: {value}")
    if message.footer:
        lines.append(f"  {message.footer}")
    return '\n'.join(lines)


class ShellAdapter:
    """Reads commands from a text stream and prints replies."""

    def __init__(self, stdin: TextIO = None, stdout: TextIO = None, user: str = 'shell'):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.user = user

    def send(self, envelope: Envelope, messages: List[Outgoing]) -> None:
        for message in messages:
            prefix = f"[{envelope.room}] " if envelope.room.startswith('#') else ''
            self.stdout.write(f"{prefix}{render_text(message)}\n")
        self.stdout.flush()

    async def run(self, robot) -> None:
        """
        Feed lines from stdin to the robot until end of input.

        Args:
            robot: Robot receiving each line as a message
        """
        loop = asyncio.get_running_loop()
        envelope = Envelope(room='Shell', user=self.user)

        while True:
            line = await loop.run_in_executor(None, self.stdin.readline)
            if not line:
                logger.info("Shell input closed")
                return
            text = line.strip()
            if text:
                await asyncio.to_thread(
                    robot.receive, ChatMessage(text=text, envelope=envelope)
                )


class SlackAdapter:
    """
    Sends messages with the Slack Web API and serves the Events API.

    Inbound app mentions and direct messages arrive at POST /slack/events
    and are passed to the robot.
    """

    API_URL = "https://slack.com/api/chat.postMessage"

    def __init__(
        self,
        token: str,
        signing_secret: str,
        host: str = '0.0.0.0',
        port: int = 3000,
        timeout: int = 30
    ):
        """
        Initialize the Slack adapter.

        Args:
            token: Bot token (xoxb-...)
            signing_secret: App signing secret for verifying inbound events
            host: Interface the events endpoint listens on
            port: Port the events endpoint listens on (default: 3000)
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.token = token
        self.signing_secret = signing_secret
        self.host = host
        self.port = port
        self.timeout = timeout

    def send(self, envelope: Envelope, messages: List[Outgoing]) -> None:
        for message in messages:
            try:
                self.post_message(envelope.room, message)
            except ChatError as e:
                logger.error(f"Error sending message to {envelope.room}: {e}")
                # Continue with the remaining messages
                continue

    def post_message(self, channel: str, message: Outgoing) -> None:
        """
        Post one message to a channel.

        Args:
            channel: Channel name ("#general") or ID
            message: Message object or plain string

        Raises:
            ChatError: If the request fails or Slack reports an error
        """
        if isinstance(message, Message):
            payload = message.to_payload()
        else:
            payload = {'text': message}
        payload['channel'] = channel

        try:
            response = requests.post(
                self.API_URL,
                json=payload,
                headers={'Authorization': f"Bearer {self.token}"},
                timeout=self.timeout
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            raise ChatError(f"chat.postMessage request failed: {e}") from e

        if not body.get('ok'):
            raise ChatError(f"chat.postMessage rejected: {body.get('error', 'unknown_error')}")

    async def run(self, robot) -> None:
        config = uvicorn.Config(
            create_app(robot, self.signing_secret),
            host=self.host,
            port=self.port,
            log_config=None
        )
        logger.info(f"Serving Slack events on {self.host}:{self.port}/slack/events")
        await uvicorn.Server(config).serve()
