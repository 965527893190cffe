"""
QR transport seam tests with fake devices.
"""

from pragmatica.backup import ScannerSession, render_backup
from pragmatica.backup.transport import RENDER_FAILED_MESSAGE, SCANNER_FAILED_MESSAGE
from pragmatica.errors import TransportError

NOW = 1_760_000_000_000


class FakeRenderer:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def render(self, text):
        self.calls.append(text)
        if self.fail:
            raise TransportError("no image backend")
        return f"<qr {len(text)}>"


class FakeScanner:
    def __init__(self, fail_start=False):
        self.fail_start = fail_start
        self.started = False
        self.stopped = False
        self.callback = None

    def start(self, on_decode):
        if self.fail_start:
            raise TransportError("camera busy")
        self.started = True
        self.callback = on_decode

    def stop(self):
        self.stopped = True

    def emit(self, text):
        self.callback(text)


class TestRenderBackup:
    def test_renders(self, store):
        store.mark_joke_read(1)
        renderer = FakeRenderer()
        result = render_backup(store, renderer, now=NOW)
        assert result.ok
        assert renderer.calls == [result.text]
        assert result.image == f"<qr {len(result.text)}>"

    def test_capacity_checked_first(self, store):
        store.mark_joke_read(1)
        renderer = FakeRenderer()
        result = render_backup(store, renderer, now=NOW, max_bytes=10)
        assert result.ok is False
        assert result.overage == result.size - 10
        assert renderer.calls == []

    def test_render_failure(self, store):
        store.mark_joke_read(1)
        result = render_backup(store, FakeRenderer(fail=True), now=NOW)
        assert result.ok is False
        assert result.message == RENDER_FAILED_MESSAGE


class TestScannerSession:
    def test_new_scan_stops_previous(self):
        session = ScannerSession()
        first, second = FakeScanner(), FakeScanner()
        session.start(first, lambda text: None)
        session.start(second, lambda text: None)
        assert first.stopped is True
        assert second.started is True
        assert second.stopped is False
        assert session.active

    def test_decode_is_one_shot(self):
        session = ScannerSession()
        scanner = FakeScanner()
        received = []
        session.start(scanner, received.append)

        scanner.emit("payload")
        scanner.emit("again")
        assert received == ["payload"]
        assert scanner.stopped is True
        assert not session.active

    def test_stale_scanner_ignored(self):
        session = ScannerSession()
        first, second = FakeScanner(), FakeScanner()
        received = []
        session.start(first, received.append)
        session.start(second, received.append)

        first.emit("old")
        assert received == []
        assert session.active

    def test_start_failure_reported(self):
        session = ScannerSession()
        outcome = session.start(FakeScanner(fail_start=True), lambda text: None)
        assert outcome.ok is False
        assert outcome.message == SCANNER_FAILED_MESSAGE
        assert not session.active

    def test_stop_when_idle(self):
        assert ScannerSession().stop().ok
