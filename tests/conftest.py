from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from selenium.common.exceptions import TimeoutException

from config.database import BlobStorage, SnapshotStore
from config.settings import Settings
from monitoring import scraper
from monitoring.models import Registration

RESULTS_PAGE = """
<html><body>
<table id="MainContent_gvBuscarActXCat">
  <tr><th></th><th>Polideportivo</th><th>Categoría</th><th>Actividad</th><th>Subcategoría</th><th>Horario</th></tr>
  <tr><td><a href="#">Sel</a></td><td> A </td><td>B</td><td>C</td><td>D</td><td>E</td></tr>
  <tr><td><a href="#">Sel</a></td><td>F</td><td>G</td><td>H</td><td>I</td><td> J
  </td></tr>
</table>
</body></html>
"""


class FakeWait:
    """Stand-in for WebDriverWait; fails for the timeouts listed in `failing`."""

    failing: set = set()
    calls: list = []

    def __init__(self, driver, timeout, ignored_exceptions=None):
        self.driver = driver
        self.timeout = timeout

    def until(self, condition):
        FakeWait.calls.append(self.timeout)
        if self.timeout in FakeWait.failing:
            raise TimeoutException(f"waited {self.timeout}s")
        return True


class RecordingChannel:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send(self, recipient, sender, subject, html_body):
        if self.error is not None:
            raise self.error
        self.sent.append(
            {"recipient": recipient, "sender": sender, "subject": subject, "html": html_body}
        )


@pytest.fixture
def fake_wait(monkeypatch):
    FakeWait.failing = set()
    FakeWait.calls = []
    monkeypatch.setattr(scraper, "WebDriverWait", FakeWait)
    monkeypatch.setattr(scraper, "Select", MagicMock())
    return FakeWait


@pytest.fixture
def browser():
    driver = MagicMock(name="driver")
    driver.page_source = RESULTS_PAGE
    driver.get_screenshot_as_png.return_value = b"\x89PNG fake"
    return driver


@pytest.fixture
def storage(tmp_path):
    blob_storage = BlobStorage(f"sqlite:///{tmp_path / 'registrations.db'}", "http://testserver")
    blob_storage.init()
    yield blob_storage
    blob_storage.dispose()


@pytest.fixture
def snapshot_store(storage):
    return SnapshotStore(storage)


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'app.db'}",
        public_base_url="http://testserver",
        recipient_email="alerts@example.com",
        sender_email="monitor@example.com",
        smtp_password="secret",
        settle_delay=0,
        log_file=None,
    )


@pytest.fixture
def sample_registrations():
    return [
        Registration("Polideportivo Norte", "DEPORTE", "BASQUET", "Sub 13", "Lun y Mie 18:00"),
        Registration("Polideportivo Sur", "DEPORTE", "BASQUET", "Mayores", "Mar y Jue 20:00"),
    ]
