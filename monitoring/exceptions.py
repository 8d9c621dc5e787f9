"""
Monitoring Exceptions

Error taxonomy shared by the scraper, storage and notification layers.
"""


class MonitorError(Exception):
    """Base class for every error raised by the registration monitor."""


class ExtractionError(MonitorError):
    """Navigation, timeout or missing element while driving the remote form."""

    def __init__(self, step, message):
        self.step = step
        super().__init__(f"{step}: {message}")


class StorageError(MonitorError):
    """The storage backend rejected a read or write."""


class NotFoundError(MonitorError):
    """Nothing has been stored under the requested name yet."""


class DeliveryError(MonitorError):
    """The notification channel failed to deliver a message."""


class ConfigurationError(DeliveryError):
    """Delivery credentials are missing."""
