"""
Error taxonomy for FlightRadar.

Nothing raised here is fatal to the fusion engine: fetch failures leave
previously fused state untouched and are retried at the next opportunity.
A throttled lookup is not an error at all (see ``LookupStatus.THROTTLED``).
"""

from typing import Optional


class FlightRadarError(Exception):
    """Base exception for all FlightRadar errors."""


class ConfigError(FlightRadarError):
    """Invalid or missing configuration."""


class TransientFetchFailure(FlightRadarError):
    """
    Network, HTTP or parse error on an external call.

    Logged, state unchanged, retried at the next scheduled opportunity.
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(TransientFetchFailure):
    """OAuth token request rejected or malformed."""


class NotFound(FlightRadarError):
    """
    Remote service explicitly reported that no data exists.

    Cached as a terminal negative result and never retried.
    """
