"""
Failure Recorder

Saves a screenshot of the browser when a scrape fails, for manual debugging.
"""

import logging

from config.database import SCREENSHOT_NAME

logger = logging.getLogger(__name__)


class FailureRecorder:
    """Best-effort screenshot capture. Never raises."""

    def __init__(self, storage, name=SCREENSHOT_NAME):
        self.storage = storage
        self.name = name

    def capture(self, driver):
        """
        Capture the current page and store it under the fixed screenshot name.

        Args:
            driver: Live Selenium WebDriver

        Returns:
            str or None: URL of the stored screenshot, None if capture failed
        """
        try:
            screenshot = driver.get_screenshot_as_png()
            url = self.storage.put(self.name, screenshot, "image/png")
            logger.info(f"▸ Error screenshot saved to {url}")
            return url
        except Exception as e:
            logger.error(f"✗ Error saving screenshot: {e}")
            return None
