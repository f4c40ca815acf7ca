"""
ICS Subscription handler for the read-only calendar feed.

Just fetches raw VCALENDAR text. Parsing and recurrence expansion are
handled by ics_parser; caching by ICSSubscriptionService.
"""

import logging
import requests

from .errors import NetworkError

logger = logging.getLogger(__name__)

USER_AGENT = 'feedcal/1.0'
ACCEPT = 'text/calendar,*/*;q=0.1'


class ICSSubscription:
    """
    Handler for an ICS calendar subscription.

    Performs a single GET per fetch() call. No retries happen here;
    the caller decides when to try again.
    """

    def __init__(self, url: str, name: str = "Calendar", subscription_id: str = "default"):
        """
        Initialize an ICS subscription.

        Args:
            url: URL to fetch the ICS file from
            name: Display name for the subscription
            subscription_id: Prefix used for the ids of parsed events
        """
        self.url = url
        self.name = name
        self.id = subscription_id

    def fetch(self, timeout: int = 30) -> str:
        """
        Fetch the ICS file from the URL.

        Args:
            timeout: Request timeout in seconds

        Returns:
            The raw VCALENDAR text.

        Raises:
            NetworkError: connection failure, timeout or non-2xx response.
        """
        try:
            response = requests.get(
                self.url,
                timeout=timeout,
                headers={
                    'User-Agent': USER_AGENT,
                    'Accept': ACCEPT,
                }
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise NetworkError(f"HTTP {status} from {self.url}", status_code=status) from e
        except requests.RequestException as e:
            raise NetworkError(f"Request to {self.url} failed: {e}") from e

        # Ensure proper UTF-8 decoding
        response.encoding = 'utf-8'
        logger.debug("Fetched %d bytes from %s", len(response.content), self.url)
        return response.text
