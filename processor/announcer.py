"""Announcer: scheduled and on-demand announcements of upcoming events."""
import logging
from typing import List, Optional

from chat.robot import Envelope
from processor.errors import FetchError, StoreError
from processor.event_formatter import EventFormatter, Sender
from processor.models import AnnouncerState, CycleResult, Event, Message
from processor.scheduler import IntervalScheduler

logger = logging.getLogger(__name__)


class Announcer:
    """
    Announces new Meetup events to a chat channel.

    Scheduled cycles only announce events newer than the persisted
    watermark and advance it afterwards. The "show upcoming events" command
    lists every upcoming event and leaves the watermark alone.
    """

    COMMAND_PATTERN = r"show upcoming (?:events|meetups)"
    FETCH_FAILED_REPLY = "Sorry, I couldn't reach Meetup to look up upcoming events."

    def __init__(
        self,
        robot,
        client,
        formatter: EventFormatter,
        store=None,
        notification_channel: Optional[str] = None,
        check_interval_minutes: int = 10
    ):
        """
        Initialize the announcer and register its command.

        Args:
            robot: Robot used for command registration and channel sends
            client: Event source with fetch_events()
            formatter: Formatter building messages from events
            store: WatermarkStore, or None to run without persistence
            notification_channel: Channel name without "#", or None
            check_interval_minutes: Minutes between scheduled cycles
        """
        self.robot = robot
        self.client = client
        self.formatter = formatter
        self.store = store
        self.notification_channel = notification_channel
        self.check_interval_minutes = check_interval_minutes
        self.state = AnnouncerState()
        self.scheduler: Optional[IntervalScheduler] = None

        self.robot.respond(self.COMMAND_PATTERN, self.cmd_show_upcoming)

    @property
    def scheduling_enabled(self) -> bool:
        return bool(self.notification_channel) and self.store is not None

    def initialize(self) -> None:
        """
        Connect to the store, load the watermark and start the scheduler.

        Must be called with a running event loop when scheduling is
        enabled. An unreachable store disables scheduled announcements.
        """
        if self.store is not None:
            try:
                self.store.connect()
            except StoreError as e:
                logger.warning(
                    f"Watermark store unavailable, scheduled announcements disabled: {e}"
                )
                self.store = None

        if self.store is not None:
            self.state.last_announced = self.store.load()
            logger.info(f"Loaded watermark {self.state.last_announced}")
        else:
            logger.warning(
                "No watermark store, only on-demand announcements are available"
            )

        if not self.notification_channel:
            logger.info("No notification channel configured, scheduler not started")
            return
        if not self.scheduling_enabled:
            return

        self.scheduler = IntervalScheduler(
            self.check_and_announce, self.check_interval_minutes * 60
        )
        self.scheduler.start()

    def cmd_show_upcoming(self, response) -> None:
        """
        Reply with every upcoming event.

        Args:
            response: Robot response for the matched command
        """
        try:
            events = self.client.fetch_events()
        except FetchError as e:
            logger.error(
                f"Failed to fetch events for command: {e}",
                extra={'error_type': type(e).__name__}
            )
            response.send(self.FETCH_FAILED_REPLY)
            return

        if not events:
            response.send(f"There are no upcoming events for {self.client.group_name}.")
            return

        self.formatter.announce(events, response.send)

    def check_and_announce(self) -> CycleResult:
        """
        Announce events newer than the watermark to the notification channel.

        Returns:
            CycleResult describing what happened
        """
        result = CycleResult(watermark=self.state.last_announced)

        try:
            events = self.client.fetch_events()
        except FetchError as e:
            logger.error(
                f"Failed to fetch events, skipping cycle: {e}",
                extra={'error_type': type(e).__name__}
            )
            result.skipped_reason = 'fetch_failed'
            return result

        result.fetched = len(events)
        unannounced = self.select_unannounced(events, self.state.last_announced)
        logger.info(f"{len(unannounced)} unannounced events found")

        if not unannounced:
            result.skipped_reason = 'nothing_new'
            return result

        logger.info(
            f"Notifying #{self.notification_channel} of "
            f"{len(unannounced)} unannounced events"
        )
        result.announced = self.formatter.announce(unannounced, self._channel_sender())

        latest = unannounced[-1].time
        self.state.last_announced = latest
        result.watermark = latest
        result.saved = self.store.save(latest) if self.store is not None else False
        if not result.saved:
            logger.warning(
                f"Watermark {latest} not persisted; a restart may repeat this batch"
            )

        return result

    @staticmethod
    def select_unannounced(events: List[Event], watermark: int) -> List[Event]:
        """
        Pick events newer than the watermark.

        Args:
            events: Fetched events
            watermark: Epoch-ms time of the last announced event

        Returns:
            Events with time > watermark in ascending time order
        """
        return sorted(
            (event for event in events if event.time > watermark),
            key=lambda event: event.time
        )

    def _channel_sender(self) -> Sender:
        envelope = Envelope(room=f"#{self.notification_channel}")

        def send(message: Message) -> None:
            self.robot.send(envelope, message)

        return send
