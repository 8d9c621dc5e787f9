"""
Registration Pipeline

Orchestrates one scrape run: extract, persist the snapshot, notify.
On extraction failure it captures a screenshot and sends the failure email.
"""

import logging
from datetime import datetime, timezone

from monitoring.exceptions import ExtractionError, StorageError, DeliveryError
from monitoring.models import PipelineOutcome, SUCCESS, FAILURE

logger = logging.getLogger(__name__)


class RegistrationPipeline:
    """
    Runs the scrape-extract-persist-notify sequence.

    Args:
        extractor_factory: Callable returning a fresh RegistrationExtractor
        snapshot_store: SnapshotStore used on success
        notifier: EmailNotifier, called exactly once per run
        failure_recorder: FailureRecorder used on extraction failure
    """

    def __init__(self, extractor_factory, snapshot_store, notifier, failure_recorder):
        self.extractor_factory = extractor_factory
        self.snapshot_store = snapshot_store
        self.notifier = notifier
        self.failure_recorder = failure_recorder

    def run(self):
        logger.info("=== Starting scraping process ===")
        started_at = datetime.now(timezone.utc)
        extractor = self.extractor_factory()

        try:
            try:
                extractor.open()
                registrations = extractor.extract()
            except ExtractionError as e:
                outcome = self._handle_failure(extractor, e)
            else:
                outcome = self._handle_success(registrations)
        finally:
            extractor.close()
            logger.info("=== Process completed ===")

        outcome.started_at = started_at
        outcome.finished_at = datetime.now(timezone.utc)
        return outcome

    def _handle_success(self, registrations):
        captured_at = datetime.now(timezone.utc)
        try:
            snapshot_url = self.snapshot_store.save(registrations, captured_at)
        except StorageError as e:
            # Results are still emailed, just without the JSON link
            logger.error(f"✗ Snapshot not persisted, notifying with unsaved results: {e}")
            notified = self._notify(registrations, captured_at=captured_at)
            return PipelineOutcome(
                status=FAILURE,
                registrations=list(registrations),
                reason=f"storage: {e}",
                notified=notified,
            )

        notified = self._notify(
            registrations, reference_url=snapshot_url, captured_at=captured_at
        )
        return PipelineOutcome(
            status=SUCCESS,
            registrations=list(registrations),
            snapshot_url=snapshot_url,
            notified=notified,
        )

    def _handle_failure(self, extractor, error):
        logger.error("=== ERROR ===")
        logger.error(f"✗ Error during process: {error}")
        outcome = PipelineOutcome(status=FAILURE, reason=str(error))

        if not extractor.is_viable():
            logger.warning("Browser session unusable, skipping screenshot and notification")
            return outcome

        try:
            outcome.screenshot_url = self.failure_recorder.capture(extractor.driver)
        except Exception as e:
            logger.error(f"✗ Error saving screenshot: {e}")

        outcome.notified = self._notify(
            [], failure=str(error), reference_url=outcome.screenshot_url
        )
        return outcome

    def _notify(self, registrations, reference_url=None, captured_at=None, failure=None):
        try:
            return self.notifier.notify(
                registrations,
                reference_url=reference_url,
                captured_at=captured_at,
                failure=failure,
            )
        except DeliveryError as e:
            logger.error(f"✗ Error sending email: {e}")
            return False
