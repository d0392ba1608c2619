"""Custom exception hierarchy for the analytics engine."""


class AnalyticsError(Exception):
    """Base exception for all analytics errors."""


# --- Configuration ---
class ConfigError(AnalyticsError):
    """Invalid or missing configuration."""


class InvalidTimezoneError(ConfigError):
    """Configured market timezone is not a known IANA zone."""

    def __init__(self, timezone_name: str):
        self.timezone_name = timezone_name
        super().__init__(f"Unknown market timezone: {timezone_name!r}")


# --- Input ---
class InputError(AnalyticsError):
    """Trade input could not be read at all (file missing, not JSON/CSV).

    Malformed individual fields never raise; they are coerced to 0 by
    the normalizer.
    """
