"""
Application Lifecycle

Wires storage, scraper, notifier and scheduler together from Settings.
Nothing is created at import time; call init() to build and shutdown() to release.
"""

import logging

from config.database import BlobStorage, SnapshotStore
from monitoring.failure_recorder import FailureRecorder
from monitoring.pipeline import RegistrationPipeline
from monitoring.scraper import RegistrationExtractor, get_driver
from services.monitoring_daemon import MonitoringDaemon
from webapp.services.email_service import EmailNotifier, SmtpChannel

logger = logging.getLogger(__name__)


class Application:
    """
    Owns every long-lived collaborator of the monitor.

    Any collaborator passed to the constructor is used as-is instead of being
    built from settings, which lets tests run the whole stack without a
    browser, SMTP server or on-disk database.
    """

    def __init__(self, settings, storage=None, channel=None, driver_factory=get_driver):
        self.settings = settings
        self.storage = storage
        self.channel = channel
        self.driver_factory = driver_factory
        self.snapshot_store = None
        self.notifier = None
        self.failure_recorder = None
        self.pipeline = None
        self.daemon = None
        self.initialized = False

    def init(self):
        if self.initialized:
            return self
        settings = self.settings

        if self.storage is None:
            self.storage = BlobStorage(settings.database_url, settings.public_base_url)
        self.storage.init()

        if self.channel is None:
            self.channel = SmtpChannel(
                settings.smtp_server,
                settings.smtp_port,
                username=settings.smtp_username,
                password=settings.smtp_password,
            )

        self.snapshot_store = SnapshotStore(self.storage)
        self.failure_recorder = FailureRecorder(self.storage)
        self.notifier = EmailNotifier(
            self.channel,
            recipient=settings.recipient_email,
            sender=settings.sender_email,
            interval_hours=settings.scrape_interval_hours,
            tz_name=settings.timezone,
        )
        self.pipeline = RegistrationPipeline(
            self.build_extractor,
            self.snapshot_store,
            self.notifier,
            self.failure_recorder,
        )
        self.daemon = MonitoringDaemon(self.pipeline, settings.scrape_interval_seconds)
        self.initialized = True
        logger.info("Application initialized")
        return self

    def build_extractor(self):
        settings = self.settings
        return RegistrationExtractor(
            settings.target_url,
            category_value=settings.category_value,
            activity_value=settings.activity_value,
            settle_delay=settings.settle_delay,
            headless=settings.headless,
            driver_factory=self.driver_factory,
        )

    def start_scheduler(self):
        """Start the recurring scheduler in a background thread."""
        self.init()
        return self.daemon.start_background()

    def shutdown(self, timeout=5):
        if not self.initialized:
            return
        logger.info("Shutting down application...")
        self.daemon.stop(timeout)
        if self.daemon.busy:
            # The active run still holds database connections
            logger.warning("Run still in progress, leaving storage open")
        else:
            self.storage.dispose()
        self.initialized = False
