"""Builders for events and Meetup API records used across tests."""
from processor.models import Event, Venue


def make_event(name: str, time: int, status: str = 'upcoming') -> Event:
    return Event(
        name=name,
        time=time,
        venue=Venue(name='Surrey Central Library', address='10350 University Dr', city='Surrey'),
        link=f"https://www.meetup.com/Surrey-Code-Camp/events/evt-{time}/",
        status=status
    )


def make_record(name: str, time: int, status: str = 'upcoming', event_id: str = None) -> dict:
    """Build an event object shaped like the Meetup API response."""
    return {
        'id': event_id or f"evt-{time}",
        'name': name,
        'time': time,
        'status': status,
        'link': f"https://www.meetup.com/Surrey-Code-Camp/events/evt-{time}/",
        'venue': {
            'name': 'Surrey Central Library',
            'address_1': '10350 University Dr',
            'city': 'Surrey'
        }
    }
