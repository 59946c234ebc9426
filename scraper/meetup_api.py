"""Meetup API client for a group's upcoming events."""
import logging
from typing import Any, List

import requests

from processor.errors import EventParseError, FetchError
from processor.models import Event, UPCOMING_STATUS, Venue

logger = logging.getLogger(__name__)


class MeetupEventsClient:
    """Client for the Meetup group events endpoint."""

    BASE_URL = "https://api.meetup.com"

    def __init__(self, group_name: str, timeout: int = 30):
        """
        Initialize the events client.

        Args:
            group_name: Meetup group URL name (e.g. "Surrey-Code-Camp")
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.group_name = group_name
        self.timeout = timeout

    @property
    def events_url(self) -> str:
        return f"{self.BASE_URL}/{self.group_name}/events"

    def fetch_events(self) -> List[Event]:
        """
        Fetch the group's upcoming events, sorted by start time.

        Returns:
            List of Event objects in ascending time order

        Raises:
            FetchError: If the request fails or the body cannot be decoded
        """
        logger.info(f"Fetching events for group {self.group_name}")

        records = self._fetch_event_records()
        events = self._parse_events(records)
        events.sort(key=lambda event: event.time)

        logger.info(
            f"Fetched {len(events)} upcoming events out of "
            f"{len(records)} total events"
        )
        return events

    def _fetch_event_records(self) -> List[Any]:
        """
        Request the raw event records.

        Returns:
            Decoded JSON array from the API

        Raises:
            FetchError: On transport errors, non-2xx status or a non-array body
        """
        try:
            response = requests.get(self.events_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(
                f"Request to {self.events_url} failed: {e}"
            ) from e

        try:
            records = response.json()
        except ValueError as e:
            raise FetchError(f"Response from {self.events_url} is not JSON") from e

        if not isinstance(records, list):
            raise FetchError(
                f"Expected a JSON array from {self.events_url}, "
                f"got {type(records).__name__}"
            )

        return records

    def _parse_events(self, records: List[Any]) -> List[Event]:
        """
        Keep upcoming records and convert them to Event objects.

        Args:
            records: Raw event records

        Returns:
            List of Event objects

        Raises:
            EventParseError: If an upcoming record is malformed
        """
        events = []

        for record in records:
            if not isinstance(record, dict):
                raise EventParseError(
                    f"Event record must be an object, got {type(record).__name__}"
                )
            if record.get('status') != UPCOMING_STATUS:
                continue
            events.append(self.parse_event(record))

        return events

    @staticmethod
    def parse_event(record: dict) -> Event:
        """
        Validate a single event record.

        Args:
            record: Event object as returned by the API

        Returns:
            Event object

        Raises:
            EventParseError: If a required field is missing or invalid
        """
        label = record.get('name') or record.get('id') or '<unnamed>'

        def required(container: dict, key: str, path: str) -> str:
            value = container.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise EventParseError(
                    f"Event '{label}' missing required field: {path}", record
                )
            return value

        venue_record = record.get('venue')
        if not isinstance(venue_record, dict):
            raise EventParseError(
                f"Event '{label}' missing required field: venue", record
            )

        raw_time = required(record, 'time', 'time')
        # bool is an int subclass
        if isinstance(raw_time, bool) or not isinstance(raw_time, int):
            raise EventParseError(
                f"Event '{label}' has non-integer time: {raw_time!r}", record
            )

        event_id = record.get('id')

        return Event(
            name=required(record, 'name', 'name'),
            time=raw_time,
            venue=Venue(
                name=required(venue_record, 'name', 'venue.name'),
                address=required(venue_record, 'address_1', 'venue.address_1'),
                city=required(venue_record, 'city', 'venue.city'),
            ),
            link=required(record, 'link', 'link'),
            status=record['status'],
            event_id=str(event_id) if event_id is not None else None
        )
