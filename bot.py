"""Entry point for the Meetup announcer bot."""
import asyncio
import json
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple
from zoneinfo import ZoneInfoNotFoundError

from chat.adapters import ShellAdapter, SlackAdapter
from chat.robot import Robot
from processor.announcer import Announcer
from processor.event_formatter import EventFormatter
from scraper.meetup_api import MeetupEventsClient
from storage.watermark_store import WatermarkStore

logger = logging.getLogger(__name__)


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    EXTRA_KEYS = ('error_type', 'group', 'channel', 'interval_minutes', 'adapter')

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key in self.EXTRA_KEYS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


@dataclass
class Settings:
    """Runtime configuration read from the environment."""
    notification_channel: Optional[str] = None
    check_interval_minutes: int = 10
    group_name: str = 'Surrey-Code-Camp'
    timezone: str = EventFormatter.DEFAULT_TIMEZONE
    redis_url: Optional[str] = None
    bot_name: str = 'hubot'
    adapter: str = 'shell'
    slack_token: str = ''
    slack_signing_secret: str = ''
    slack_events_host: str = '0.0.0.0'
    slack_events_port: int = 3000
    timeout_seconds: int = 30
    log_level: str = 'INFO'


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}: {raw!r}, using {default}")
        return default
    if value <= 0:
        logger.warning(f"{name} must be positive, using {default}")
        return default
    return value


def load_settings(environ: Mapping[str, str] = None) -> Settings:
    """
    Read settings from environment variables.

    Args:
        environ: Mapping to read from (default: os.environ)

    Returns:
        Settings with defaults for anything unset
    """
    environ = os.environ if environ is None else environ
    channel = environ.get('MEETUP_NOTIFICATION_CHANNEL', '').strip().lstrip('#')

    return Settings(
        notification_channel=channel or None,
        check_interval_minutes=_int_setting(environ, 'MEETUP_CHECK_INTERVAL', 10),
        group_name=environ.get('MEETUP_GROUP_NAME') or 'Surrey-Code-Camp',
        timezone=environ.get('MEETUP_TIMEZONE') or EventFormatter.DEFAULT_TIMEZONE,
        redis_url=environ.get('REDIS_URL') or None,
        bot_name=environ.get('BOT_NAME') or 'hubot',
        adapter=(environ.get('BOT_ADAPTER') or 'shell').lower(),
        slack_token=environ.get('SLACK_BOT_TOKEN', ''),
        slack_signing_secret=environ.get('SLACK_SIGNING_SECRET', ''),
        slack_events_host=environ.get('SLACK_EVENTS_HOST') or '0.0.0.0',
        slack_events_port=_int_setting(environ, 'SLACK_EVENTS_PORT', 3000),
        timeout_seconds=_int_setting(environ, 'TIMEOUT_SECONDS', 30),
        log_level=environ.get('LOG_LEVEL', 'INFO')
    )


def build_adapter(settings: Settings):
    if settings.adapter == 'slack':
        if not settings.slack_token:
            raise ValueError("SLACK_BOT_TOKEN is required for the slack adapter")
        if not settings.slack_signing_secret:
            raise ValueError("SLACK_SIGNING_SECRET is required for the slack adapter")
        return SlackAdapter(
            token=settings.slack_token,
            signing_secret=settings.slack_signing_secret,
            host=settings.slack_events_host,
            port=settings.slack_events_port,
            timeout=settings.timeout_seconds
        )
    if settings.adapter == 'shell':
        return ShellAdapter()
    raise ValueError(f"Unknown adapter: {settings.adapter!r}")


def build_formatter(timezone_name: str) -> EventFormatter:
    try:
        return EventFormatter(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.warning(
            f"Unknown timezone {timezone_name!r}, using {EventFormatter.DEFAULT_TIMEZONE}: {e}"
        )
        return EventFormatter()


def build_robot(settings: Settings, adapter=None) -> Tuple[Robot, Announcer]:
    """
    Wire the robot and announcer from settings.

    Args:
        settings: Runtime configuration
        adapter: Chat adapter override (default: built from settings)

    Returns:
        Tuple of (robot, announcer)
    """
    robot = Robot(settings.bot_name, adapter or build_adapter(settings))

    store = None
    if settings.redis_url:
        try:
            store = WatermarkStore.from_url(
                settings.redis_url, socket_timeout=settings.timeout_seconds
            )
        except ValueError as e:
            logger.error(f"Invalid REDIS_URL, running without persistence: {e}")

    announcer = Announcer(
        robot=robot,
        client=MeetupEventsClient(settings.group_name, timeout=settings.timeout_seconds),
        formatter=build_formatter(settings.timezone),
        store=store,
        notification_channel=settings.notification_channel,
        check_interval_minutes=settings.check_interval_minutes
    )
    return robot, announcer


async def run(settings: Settings) -> None:
    robot, announcer = build_robot(settings)
    logger.info(
        "Meetup announcer starting",
        extra={
            'group': settings.group_name,
            'channel': settings.notification_channel,
            'interval_minutes': settings.check_interval_minutes,
            'adapter': settings.adapter
        }
    )
    announcer.initialize()
    try:
        await robot.run()
    finally:
        if announcer.scheduler is not None:
            announcer.scheduler.stop()


def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level)
    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("Meetup announcer stopped")


if __name__ == '__main__':
    main()
