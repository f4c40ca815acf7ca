"""
feedcal - calendar subscription engine

This module provides the core functionality for the calendar feed:
- Configuration parsing (config.py)
- ICS feed fetching (ics_subscription.py)
- Feed parsing and recurrence expansion (ics_parser.py)
- Event value types (event_wrapper.py)
- Cached subscription service and its scheduler (subscription_service.py, scheduler.py)
- Day agenda queries (agenda.py)
"""

from .config import Config, SubscriptionConfig
from .errors import FeedError, NetworkError, FormatError
from .event_wrapper import CalendarEvent, CacheEntry
from .ics_subscription import ICSSubscription
from .ics_parser import parse_calendar
from .scheduler import RefreshScheduler
from .subscription_service import ICSSubscriptionService

__all__ = [
    'Config',
    'SubscriptionConfig',
    'FeedError',
    'NetworkError',
    'FormatError',
    'CalendarEvent',
    'CacheEntry',
    'ICSSubscription',
    'parse_calendar',
    'RefreshScheduler',
    'ICSSubscriptionService',
]
