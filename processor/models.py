"""Data models for event announcements."""
from dataclasses import dataclass, field
from typing import List, Optional


UPCOMING_STATUS = 'upcoming'


@dataclass(frozen=True)
class Venue:
    """Where an event takes place."""
    name: str
    address: str
    city: str


@dataclass(frozen=True)
class Event:
    """Validated event from the Meetup API."""
    name: str
    time: int  # epoch milliseconds
    venue: Venue
    link: str
    status: str = UPCOMING_STATUS
    event_id: Optional[str] = None


@dataclass
class MessageField:
    """Titled value shown in a message attachment."""
    title: str
    value: str
    short: bool = True


@dataclass
class Message:
    """Chat message built from a single event."""
    text: str
    fields: List[MessageField] = field(default_factory=list)
    thumb_url: Optional[str] = None
    footer: Optional[str] = None

    def field_value(self, title: str) -> Optional[str]:
        for message_field in self.fields:
            if message_field.title == title:
                return message_field.value
        return None

    def to_payload(self) -> dict:
        """
        Render the message in the Slack attachment layout.

        Returns:
            Dict with text and a single attachment
        """
        attachment = {
            'fields': [
                {'title': f.title, 'value': f.value, 'short': f.short}
                for f in self.fields
            ]
        }

        # Add optional fields if present
        if self.thumb_url:
            attachment['thumb_url'] = self.thumb_url
        if self.footer:
            attachment['footer'] = self.footer

        return {'text': self.text, 'attachments': [attachment]}


@dataclass
class AnnouncerState:
    """In-memory copy of the persisted watermark."""
    last_announced: int = 0


@dataclass
class CycleResult:
    """Result of a check-and-announce cycle."""
    fetched: int = 0
    announced: int = 0
    watermark: int = 0
    saved: bool = False
    skipped_reason: Optional[str] = None
