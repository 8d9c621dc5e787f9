from __future__ import annotations

import pytest
from urllib3.exceptions import MaxRetryError

from monitoring.exceptions import DeliveryError, ExtractionError, StorageError
from monitoring.models import Registration, SUCCESS, FAILURE
from monitoring.pipeline import RegistrationPipeline
from monitoring.scraper import RegistrationExtractor


class FakeExtractor:
    def __init__(self, events, registrations=None, error=None, viable=True, open_error=None):
        self.events = events
        self.registrations = registrations or []
        self.error = error
        self.viable = viable
        self.open_error = open_error
        self.driver = object()
        self.close_count = 0

    def open(self):
        self.events.append("open")
        if self.open_error is not None:
            self.driver = None
            raise self.open_error

    def extract(self):
        self.events.append("extract")
        if self.error is not None:
            raise self.error
        return list(self.registrations)

    def is_viable(self):
        return self.viable and self.driver is not None

    def close(self):
        self.events.append("close")
        self.close_count += 1


class FakeSnapshotStore:
    def __init__(self, events, error=None):
        self.events = events
        self.error = error
        self.saved = []

    def save(self, registrations, captured_at=None):
        self.events.append("save")
        if self.error is not None:
            raise self.error
        self.saved.append(list(registrations))
        return "http://testserver/blobs/basketball-registrations.json"


class FakeNotifier:
    def __init__(self, events, error=None):
        self.events = events
        self.error = error
        self.calls = []

    def notify(self, registrations, reference_url=None, captured_at=None, failure=None):
        self.events.append("notify")
        self.calls.append(
            {"registrations": list(registrations), "reference_url": reference_url, "failure": failure}
        )
        if self.error is not None:
            raise self.error
        return True


class FakeRecorder:
    def __init__(self, events, error=None):
        self.events = events
        self.error = error
        self.drivers = []

    def capture(self, driver):
        self.events.append("capture")
        if self.error is not None:
            raise self.error
        self.drivers.append(driver)
        return "http://testserver/blobs/error-screenshot.png"


@pytest.fixture
def events():
    return []


def _pipeline(events, extractor, store=None, notifier=None, recorder=None):
    store = store or FakeSnapshotStore(events)
    notifier = notifier or FakeNotifier(events)
    recorder = recorder or FakeRecorder(events)
    pipeline = RegistrationPipeline(lambda: extractor, store, notifier, recorder)
    return pipeline, store, notifier, recorder


def test_successful_run_persists_then_notifies(events):
    rows = [Registration("A", "B", "C", "D", "E"), Registration("F", "G", "H", "I", "J")]
    extractor = FakeExtractor(events, registrations=rows)
    pipeline, store, notifier, _ = _pipeline(events, extractor)

    outcome = pipeline.run()

    assert outcome.status == SUCCESS
    assert outcome.registrations == rows
    assert outcome.notified is True
    assert events == ["open", "extract", "save", "notify", "close"]
    assert store.saved == [rows]
    assert notifier.calls[0]["registrations"] == rows
    assert notifier.calls[0]["reference_url"].endswith("basketball-registrations.json")
    assert notifier.calls[0]["failure"] is None
    assert outcome.started_at <= outcome.finished_at


def test_empty_extraction_is_persisted_and_not_a_failure(events):
    extractor = FakeExtractor(events, registrations=[])
    pipeline, store, notifier, recorder = _pipeline(events, extractor)

    outcome = pipeline.run()

    assert outcome.status == SUCCESS
    assert store.saved == [[]]
    assert notifier.calls[0]["failure"] is None
    assert "capture" not in events


def test_extraction_failure_captures_screenshot_and_sends_failure_email(events):
    extractor = FakeExtractor(events, error=ExtractionError("submit search", "timed out"))
    pipeline, store, notifier, recorder = _pipeline(events, extractor)

    outcome = pipeline.run()

    assert outcome.status == FAILURE
    assert "submit search" in outcome.reason
    assert outcome.screenshot_url.endswith("error-screenshot.png")
    assert events == ["open", "extract", "capture", "notify", "close"]
    assert store.saved == []
    assert recorder.drivers == [extractor.driver]
    assert notifier.calls[0]["registrations"] == []
    assert notifier.calls[0]["failure"] == outcome.reason


def test_capture_failure_does_not_prevent_notification(events):
    extractor = FakeExtractor(events, error=ExtractionError("navigate", "timed out"))
    recorder = FakeRecorder(events, error=RuntimeError("screenshot exploded"))
    pipeline, _, notifier, _ = _pipeline(events, extractor, recorder=recorder)

    outcome = pipeline.run()

    assert outcome.status == FAILURE
    assert outcome.screenshot_url is None
    assert len(notifier.calls) == 1
    assert notifier.calls[0]["registrations"] == []
    assert extractor.close_count == 1


def test_unusable_browser_skips_capture_and_notification(events):
    extractor = FakeExtractor(events, error=ExtractionError("navigate", "crashed"), viable=False)
    pipeline, _, notifier, _ = _pipeline(events, extractor)

    outcome = pipeline.run()

    assert outcome.status == FAILURE
    assert events == ["open", "extract", "close"]
    assert notifier.calls == []


def test_browser_that_never_launched_is_still_released(events):
    extractor = FakeExtractor(events, open_error=ExtractionError("launch browser", "no chrome"))
    pipeline, _, notifier, _ = _pipeline(events, extractor)

    outcome = pipeline.run()

    assert outcome.status == FAILURE
    assert events == ["open", "close"]
    assert notifier.calls == []


def test_storage_failure_still_emails_unsaved_results(events):
    rows = [Registration("A", "B", "C", "D", "E")]
    extractor = FakeExtractor(events, registrations=rows)
    store = FakeSnapshotStore(events, error=StorageError("database is locked"))
    pipeline, _, notifier, _ = _pipeline(events, extractor, store=store)

    outcome = pipeline.run()

    assert outcome.status == FAILURE
    assert outcome.reason.startswith("storage:")
    assert outcome.registrations == rows
    assert notifier.calls[0]["registrations"] == rows
    assert notifier.calls[0]["reference_url"] is None
    assert events[-1] == "close"


def test_delivery_error_is_recorded_without_failing_the_run(events):
    extractor = FakeExtractor(events, registrations=[Registration("A", "B", "C", "D", "E")])
    notifier = FakeNotifier(events, error=DeliveryError("550 rejected"))
    pipeline, _, _, _ = _pipeline(events, extractor, notifier=notifier)

    outcome = pipeline.run()

    assert outcome.status == SUCCESS
    assert outcome.notified is False
    assert extractor.close_count == 1


def test_programming_error_propagates_after_closing_browser(events):
    # Only code defects escape run(); browser and driver failures become outcomes
    extractor = FakeExtractor(events, error=KeyError("bug"))
    pipeline, _, notifier, _ = _pipeline(events, extractor)

    with pytest.raises(KeyError):
        pipeline.run()

    assert extractor.close_count == 1
    assert notifier.calls == []


def _real_extractor(driver_factory):
    return RegistrationExtractor(
        "https://example.test/InscripcionWeb.aspx", settle_delay=0, driver_factory=driver_factory
    )


def test_dead_chromedriver_mid_run_is_a_failure_outcome(events, fake_wait, browser):
    browser.get.side_effect = MaxRetryError(None, "/session/abc/url", reason="connection refused")
    extractor = _real_extractor(lambda headless=True: browser)
    pipeline, _, notifier, recorder = _pipeline(events, extractor)

    outcome = pipeline.run()

    assert outcome.status == FAILURE
    assert outcome.reason.startswith("navigate:")
    assert recorder.drivers == [browser]
    assert notifier.calls[0]["failure"] == outcome.reason
    browser.quit.assert_called_once()


def test_driver_install_failure_is_a_failure_outcome(events):
    def missing_driver(headless=True):
        raise ValueError("There is no such driver by url")

    pipeline, store, notifier, _ = _pipeline(events, _real_extractor(missing_driver))

    outcome = pipeline.run()

    assert outcome.status == FAILURE
    assert outcome.reason.startswith("launch browser:")
    assert store.saved == []
    assert notifier.calls == []
