"""Exceptions raised by the announcer components."""


class AnnouncerError(Exception):
    """Base class for announcer errors."""


class FetchError(AnnouncerError):
    """Events could not be fetched or decoded from the Meetup API."""


class EventParseError(FetchError):
    """An event record is missing a required field or has a bad value."""

    def __init__(self, message: str, record: dict = None):
        super().__init__(message)
        self.record = record or {}


class StoreError(AnnouncerError):
    """The key-value store could not be reached, read or written."""


class ChatError(AnnouncerError):
    """A chat adapter failed to deliver a message."""
