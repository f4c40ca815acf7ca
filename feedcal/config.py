"""
Configuration parser for feedcal.

Handles TOML file parsing for the calendar subscription settings.
"""

import tomllib
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional


DEFAULT_TIMEZONE = "Europe/Amsterdam"


@dataclass
class SubscriptionConfig:
    """Configuration for the read-only ICS subscription."""
    url: str = ""  # Empty disables the calendar
    name: str = "Calendar"


@dataclass
class Config:
    """Main configuration container for feedcal."""

    refresh_interval: int = 300  # Scheduler tick in seconds (0 to disable)
    timezone: str = DEFAULT_TIMEZONE
    request_timeout: int = 30
    subscription: SubscriptionConfig = field(default_factory=SubscriptionConfig)

    @property
    def calendar_url(self) -> str:
        """The configured feed URL, stripped of surrounding whitespace."""
        return (self.subscription.url or "").strip()

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'feedcal' / 'feedcal.toml'

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        """Build a Config from already-parsed TOML data."""
        general = data.get('General', {})
        sub_data = data.get('Subscription', {})

        subscription = SubscriptionConfig(
            url=sub_data.get('url', ''),
            name=sub_data.get('name', SubscriptionConfig.name),
        )

        return cls(
            refresh_interval=int(general.get('refresh_interval', 300)),
            timezone=general.get('timezone', DEFAULT_TIMEZONE),
            request_timeout=int(general.get('request_timeout', 30)),
            subscription=subscription,
        )

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """Load configuration from TOML file."""
        if config_path is None:
            config_path = cls.get_default_config_path()

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'rb') as f:
            data = tomllib.load(f)

        return cls.from_dict(data)
