"""
Monitoring Daemon

Background service that runs the registration pipeline immediately and then
on a fixed interval, one run at a time.
"""

import sys
import time
import logging
import signal
import threading
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from config.settings import Settings, configure_logging

logger = logging.getLogger(__name__)


class MonitoringDaemon:
    """
    Runs the pipeline once, then every interval_seconds until stopped.

    A run lock guarantees at most one active pipeline run; a tick or manual
    trigger that arrives while a run is active is skipped, not queued.
    """

    def __init__(self, pipeline, interval_seconds=6 * 60 * 60, clock=time.monotonic, sleep=time.sleep):
        self.pipeline = pipeline
        self.interval_seconds = interval_seconds
        self.clock = clock
        self.sleep = sleep
        self.running = False
        self.cycle_count = 0
        self.last_outcome = None
        self._run_lock = threading.Lock()
        self._thread = None

    @property
    def busy(self):
        return self._run_lock.locked()

    def run_once(self):
        """
        Run the pipeline unless a run is already in progress.

        Returns:
            PipelineOutcome or None: None when skipped or when the run crashed
        """
        if not self._run_lock.acquire(blocking=False):
            logger.warning("Previous run still in progress, skipping this one")
            return None

        try:
            self.cycle_count += 1
            logger.info(f"=== Monitoring Cycle #{self.cycle_count} ===")
            outcome = self.pipeline.run()
            self.last_outcome = outcome
            logger.info(
                f"Cycle #{self.cycle_count} finished: {outcome.status} "
                f"({len(outcome.registrations)} registrations)"
            )
            return outcome
        except Exception as e:
            logger.error(f"Error in monitoring cycle: {e}", exc_info=True)
            return None
        finally:
            self._run_lock.release()

    def trigger_async(self):
        """
        Start one run in a background thread and return immediately.

        Returns:
            bool: False if a run was already in progress
        """
        if self.busy:
            logger.info("Manual trigger ignored, a run is already in progress")
            return False
        thread = threading.Thread(target=self.run_once, name="manual-scrape", daemon=True)
        thread.start()
        return True

    def start(self):
        """Run immediately, then on the fixed interval until stop() is called."""
        self.running = True
        logger.info(f"Starting Monitoring Daemon, running every {self.interval_seconds / 3600:g} hours")
        next_run = self.clock()

        while self.running:
            next_run += self.interval_seconds
            self.run_once()

            # Check every second if we should stop (allows responsive shutdown)
            while self.running and self.clock() < next_run:
                self.sleep(min(1, next_run - self.clock()))

        logger.info("Monitoring Daemon stopped")

    def start_background(self):
        self._thread = threading.Thread(target=self.start, name="monitoring-daemon", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout=None):
        self.running = False
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning(f"Scheduler thread still running after {timeout}s, a run is in progress")


def main():
    """
    Main daemon entry point.
    Builds the application and runs the scheduler in the foreground.
    """
    from services.application import Application

    settings = Settings.from_env()
    configure_logging(settings.log_file)

    application = Application(settings)
    application.init()

    def signal_handler(signum, frame):
        """Handle shutdown signals gracefully."""
        logger.info("Received shutdown signal. Stopping gracefully...")
        application.daemon.running = False

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    logger.info("Press Ctrl+C to stop")
    try:
        application.daemon.start()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        application.shutdown()


if __name__ == "__main__":
    main()
