"""Formatter turning events into chat messages."""
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable
from zoneinfo import ZoneInfo

from processor.models import Event, Message, MessageField

logger = logging.getLogger(__name__)

Sender = Callable[[Message], None]


class EventFormatter:
    """Builds announcement messages and hands them to a sender."""

    DEFAULT_TIMEZONE = 'America/Vancouver'
    THUMB_URL = (
        'https://secure.meetupstatic.com/s/img/422066906568/'
        'logo/swarm/m_swarm_128x128.png'
    )

    def __init__(self, timezone_name: str = DEFAULT_TIMEZONE):
        """
        Initialize the formatter.

        Args:
            timezone_name: IANA timezone used for the "When" field
        """
        self.tz = ZoneInfo(timezone_name)

    def format(self, event: Event) -> Message:
        """
        Build the announcement message for an event.

        Args:
            event: Event to announce

        Returns:
            Message with "Where" and "When" fields
        """
        venue = event.venue
        return Message(
            text=event.name,
            fields=[
                MessageField(
                    title='Where',
                    value=f"{venue.name}\n{venue.address}, {venue.city}"
                ),
                MessageField(title='When', value=self.format_time(event.time)),
            ],
            thumb_url=self.THUMB_URL,
            footer=event.link
        )

    def format_time(self, epoch_ms: int) -> str:
        """
        Render an epoch-ms timestamp as a time of day, e.g. "7:00pm".

        Args:
            epoch_ms: Milliseconds since the Unix epoch

        Returns:
            Time of day in the formatter's timezone
        """
        local = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).astimezone(self.tz)
        hour = local.hour % 12 or 12
        suffix = 'am' if local.hour < 12 else 'pm'
        return f"{hour}:{local.minute:02d}{suffix}"

    def announce(self, events: Iterable[Event], sender: Sender) -> int:
        """
        Format each event and pass it to the sender, in order.

        Args:
            events: Events to announce
            sender: Callable delivering one message

        Returns:
            Count of messages handed to the sender
        """
        count = 0
        for event in events:
            sender(self.format(event))
            count += 1
        return count
