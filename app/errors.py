class WeatherIcsError(Exception):
    """Base error for the weather calendar service."""


class UpstreamError(WeatherIcsError):
    """A weather or geocoding provider failed or returned an unusable body."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamTimeout(UpstreamError):
    pass


class StoreError(WeatherIcsError):
    """The weather cache store could not be queried."""


class LocationValidationError(WeatherIcsError):
    """No location could be resolved for the request."""
