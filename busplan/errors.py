"""Exception taxonomy shared by the timetable, weather and publication layers."""


class BusPlanError(Exception):
    """Base class for all errors raised by the bus planning service."""


class FormatError(BusPlanError, ValueError):
    """Raised when a time-of-day string is not a valid ``HH:MM`` value."""


class NoWeatherDataError(BusPlanError):
    """Raised when the weather provider returned an empty hourly/daily series."""


class UpstreamFetchError(BusPlanError):
    """Raised when the weather provider could not be reached or returned junk."""


class PublishError(BusPlanError):
    """Raised when the distribution channel rejects a publish."""
