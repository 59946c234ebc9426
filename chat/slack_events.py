"""Slack Events API endpoint feeding inbound messages to the robot."""
import hashlib
import hmac
import json
import logging
import re
import time
from typing import Optional

from fastapi import BackgroundTasks, FastAPI, Header, HTTPException, Request

from chat.robot import ChatMessage, Envelope

logger = logging.getLogger(__name__)

MAX_REQUEST_AGE_SECONDS = 60 * 5
LEADING_MENTION = re.compile(r"^\s*<@[A-Z0-9]+(?:\|[^>]*)?>[:,]?\s*")


def verify_signature(
    signing_secret: str,
    timestamp: Optional[str],
    body: bytes,
    signature: Optional[str],
    now: float = None
) -> bool:
    """
    Check a request's X-Slack-Signature against the signing secret.

    Args:
        signing_secret: App signing secret
        timestamp: X-Slack-Request-Timestamp header
        body: Raw request body
        signature: X-Slack-Signature header ("v0=<hex>")
        now: Current epoch seconds (default: time.time())

    Returns:
        True if the signature matches and the request is recent
    """
    if not timestamp or not signature:
        return False
    try:
        sent_at = int(timestamp)
    except ValueError:
        return False

    now = time.time() if now is None else now
    if abs(now - sent_at) > MAX_REQUEST_AGE_SECONDS:
        return False

    base = b"v0:" + timestamp.encode('utf-8') + b":" + body
    expected = "v0=" + hmac.new(
        signing_secret.encode('utf-8'), base, hashlib.sha256
    ).hexdigest()
    return hmac.compare_digest(expected, signature)


def to_chat_message(event: dict, bot_name: str) -> Optional[ChatMessage]:
    """
    Convert a Slack event to a message addressed to the robot.

    Only app mentions and direct messages are handled. The leading
    "<@U...>" mention is rewritten to the robot's name, and direct messages
    are treated as addressed to the robot.

    Args:
        event: The "event" object of an event_callback payload
        bot_name: Name used in the robot's respond() patterns

    Returns:
        ChatMessage, or None for events the robot ignores
    """
    if event.get('bot_id') or event.get('subtype'):
        return None

    is_mention = event.get('type') == 'app_mention'
    is_direct = event.get('type') == 'message' and event.get('channel_type') == 'im'
    if not (is_mention or is_direct):
        return None

    text = event.get('text') or ''
    channel = event.get('channel')
    if not channel or not text.strip():
        return None

    text = f"{bot_name} {LEADING_MENTION.sub('', text, count=1).strip()}"
    return ChatMessage(text=text, envelope=Envelope(room=channel, user=event.get('user')))


def create_app(robot, signing_secret: str) -> FastAPI:
    """
    Build the events app for a robot.

    Args:
        robot: Robot receiving converted messages
        signing_secret: Slack app signing secret

    Returns:
        FastAPI app serving POST /slack/events
    """
    app = FastAPI(title="Meetup Announcer Slack Events")

    @app.post("/slack/events")
    async def slack_events(
        request: Request,
        background_tasks: BackgroundTasks,
        x_slack_request_timestamp: Optional[str] = Header(None),
        x_slack_signature: Optional[str] = Header(None),
        x_slack_retry_num: Optional[str] = Header(None)
    ):
        body = await request.body()
        if not verify_signature(signing_secret, x_slack_request_timestamp, body, x_slack_signature):
            raise HTTPException(status_code=401, detail="Invalid Slack signature")

        try:
            payload = json.loads(body)
        except ValueError:
            raise HTTPException(status_code=400, detail="Body is not JSON")

        if payload.get('type') == 'url_verification':
            return {'challenge': payload.get('challenge')}

        # Retries repeat an event that was already acknowledged
        if x_slack_retry_num is not None:
            logger.info(f"Ignoring Slack retry {x_slack_retry_num}")
            return {'ok': True}

        if payload.get('type') == 'event_callback':
            message = to_chat_message(payload.get('event') or {}, robot.name)
            if message is not None:
                # Runs in the threadpool after the response is sent
                background_tasks.add_task(robot.receive, message)

        return {'ok': True}

    return app
