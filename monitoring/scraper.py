"""
Registration Scraper

Drives the municipal registration form (InscripcionWeb.aspx) through its
"search by category" flow and extracts the resulting GridView rows.
The form is an ASP.NET WebForms page with no API, so every step goes through
a real Chrome session.
"""

import logging
from contextlib import contextmanager
from bs4 import BeautifulSoup

from selenium import webdriver
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.chrome.options import Options
from webdriver_manager.chrome import ChromeDriverManager

from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait, Select
from selenium.webdriver.support import expected_conditions as EC
from selenium.common.exceptions import (
    TimeoutException,
    WebDriverException,
    StaleElementReferenceException,
)
from urllib3.exceptions import HTTPError

from monitoring.exceptions import ExtractionError
from monitoring.models import Registration

logger = logging.getLogger(__name__)

# Fixed timeouts (seconds)
NAVIGATION_TIMEOUT = 60
SETTLE_TIMEOUT = 15
SUBMIT_TIMEOUT = 60
RESULTS_TIMEOUT = 10

# Element ids of the remote form
SEARCH_BY_CATEGORY_RADIO = "MainContent_TipoBusqueda_1"
CATEGORY_DROPDOWN = "MainContent_ddlCategoria"
ACTIVITY_DROPDOWN = "MainContent_ddlActividad"
SEARCH_BUTTON = "MainContent_btnBuscarCat"
RESULTS_TABLE = "MainContent_gvBuscarActXCat"

# Column 0 of the results grid is the selection link
FIRST_DATA_CELL = 1

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)


def get_driver(headless=True):
    """
    Get a configured Chrome driver.
    """
    chrome_options = Options()

    if headless:
        chrome_options.add_argument("--headless=new")

    # Critical flags for Docker environment
    chrome_options.add_argument("--no-sandbox")
    chrome_options.add_argument("--disable-setuid-sandbox")
    chrome_options.add_argument("--disable-dev-shm-usage")
    chrome_options.add_argument("--disable-gpu")
    chrome_options.add_argument("--no-first-run")
    chrome_options.add_argument("--window-size=1920,1080")
    chrome_options.add_argument(f"--user-agent={USER_AGENT}")

    driver = webdriver.Chrome(
        service=Service(ChromeDriverManager().install()), options=chrome_options
    )
    driver.set_page_load_timeout(NAVIGATION_TIMEOUT)
    return driver


def parse_registrations(html_content):
    """
    Parse the results grid out of a rendered page.

    Every row but the header becomes one Registration, in table order.
    Missing cells become empty strings. A page without the grid yields [].
    """
    soup = BeautifulSoup(html_content, "html.parser")
    table = soup.find(id=RESULTS_TABLE)
    if table is None:
        return []

    rows = [row for row in table.find_all("tr") if row.find_parent("table") is table]
    registrations = []
    for row in rows[1:]:
        cells = [td.get_text() for td in row.find_all("td", recursive=False)]
        registrations.append(Registration.from_cells(cells[FIRST_DATA_CELL:]))
    return registrations


def _document_ready(driver):
    return driver.execute_script("return document.readyState") == "complete"


def _dropdown_has_option(element_id, value):
    """Condition: the dropdown exists and offers the given option value."""

    def _condition(driver):
        options = driver.find_elements(
            By.CSS_SELECTOR, f"#{element_id} option[value='{value}']"
        )
        return len(options) > 0

    return _condition


class RegistrationExtractor:
    """
    One browser session against the registration form.

    open() launches the browser, extract() runs the search and returns the rows,
    close() quits the browser. The session is never reused across runs.
    """

    def __init__(
        self,
        target_url,
        category_value="1",
        activity_value="16",
        settle_delay=3.0,
        headless=True,
        driver_factory=get_driver,
    ):
        self.target_url = target_url
        self.category_value = category_value
        self.activity_value = activity_value
        self.settle_delay = settle_delay
        self.headless = headless
        self.driver_factory = driver_factory
        self.driver = None
        self._closed = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @contextmanager
    def _step(self, name):
        try:
            yield
        except ExtractionError:
            raise
        except TimeoutException as e:
            raise ExtractionError(name, f"timed out ({e.msg or 'no detail'})") from e
        except WebDriverException as e:
            raise ExtractionError(name, e.msg or e.__class__.__name__) from e
        except (HTTPError, OSError) as e:
            # chromedriver process gone or unreachable
            raise ExtractionError(name, f"driver connection lost ({e})") from e

    def _wait(self, timeout):
        return WebDriverWait(
            self.driver, timeout, ignored_exceptions=(StaleElementReferenceException,)
        )

    def _settle(self, old_element, condition=None):
        """
        Wait for the postback triggered on old_element to finish.

        The element going stale shows the page was replaced; if that does not
        happen within the settle delay the update was client-side only. Then
        condition, when given, is polled on the new page.
        """
        try:
            self._wait(self.settle_delay).until(EC.staleness_of(old_element))
        except TimeoutException:
            logger.debug(f"No page reload within {self.settle_delay}s, continuing")
        if condition is not None:
            self._wait(SETTLE_TIMEOUT).until(condition)
        self._wait(SETTLE_TIMEOUT).until(_document_ready)

    def open(self):
        if self.driver is not None:
            return self.driver
        try:
            self.driver = self.driver_factory(headless=self.headless)
        except Exception as e:
            # webdriver-manager and Chrome fail with many unrelated exception types
            raise ExtractionError("launch browser", f"{e.__class__.__name__}: {e}") from e
        logger.info("▸ Browser initialized")
        return self.driver

    def is_viable(self):
        """True while the browser session can still answer commands."""
        if self.driver is None or self._closed:
            return False
        try:
            self.driver.current_url
            return True
        except (WebDriverException, HTTPError, OSError) as e:
            logger.warning(f"Browser session is no longer usable: {e}")
            return False

    def extract(self):
        """
        Run the search and return the registrations found.

        Raises:
            ExtractionError: A step timed out or its element was not found
        """
        if self.driver is None:
            self.open()
        driver = self.driver

        logger.info("▸ Navigating to page...")
        with self._step("navigate"):
            driver.get(self.target_url)
            self._wait(NAVIGATION_TIMEOUT).until(_document_ready)
        logger.info("✓ Page loaded")

        logger.info('▸ Selecting "Por Categoría"...')
        with self._step("select search mode"):
            radio = driver.find_element(By.ID, SEARCH_BY_CATEGORY_RADIO)
            radio.click()
            self._settle(radio, EC.element_to_be_clickable((By.ID, CATEGORY_DROPDOWN)))
        logger.info("✓ Option selected")

        logger.info(f"▸ Selecting category {self.category_value}...")
        with self._step("select category"):
            dropdown = driver.find_element(By.ID, CATEGORY_DROPDOWN)
            Select(dropdown).select_by_value(self.category_value)
            self._settle(dropdown, _dropdown_has_option(ACTIVITY_DROPDOWN, self.activity_value))
        logger.info("✓ Category selected")

        logger.info(f"▸ Selecting activity {self.activity_value}...")
        with self._step("select activity"):
            dropdown = driver.find_element(By.ID, ACTIVITY_DROPDOWN)
            Select(dropdown).select_by_value(self.activity_value)
            # No element signals completion here, only the reload itself
            self._settle(dropdown)
        logger.info("✓ Activity selected")

        logger.info("▸ Clicking Search button...")
        with self._step("submit search"):
            button = driver.find_element(By.ID, SEARCH_BUTTON)
            button.click()
            self._wait(SUBMIT_TIMEOUT).until(EC.staleness_of(button))
            self._wait(SUBMIT_TIMEOUT).until(_document_ready)
        logger.info("✓ Search performed")

        logger.info("▸ Looking for results...")
        with self._step("wait for results"):
            try:
                self._wait(RESULTS_TIMEOUT).until(
                    EC.presence_of_element_located((By.ID, RESULTS_TABLE))
                )
            except TimeoutException:
                logger.warning(
                    f"Results table did not appear within {RESULTS_TIMEOUT}s, treating as no results"
                )
                return []
        logger.info("✓ Results table found")

        with self._step("extract rows"):
            registrations = parse_registrations(driver.page_source)

        logger.info(f"▸ Total registrations: {len(registrations)}")
        for registration in registrations:
            logger.info(
                f"  {registration.polideportivo} | {registration.subcategoria} | {registration.horario}"
            )
        return registrations

    def close(self):
        if self._closed:
            return
        self._closed = True
        if self.driver is not None:
            try:
                self.driver.quit()
            except (WebDriverException, HTTPError, OSError) as e:
                logger.warning(f"Error closing browser: {e}")
        logger.info("▸ Browser closed")
