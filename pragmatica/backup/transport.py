"""
QR transport seam.

Image generation and camera decoding belong to outside libraries; they
are reached through two small protocols. This module only guarantees:
- the capacity check runs before a renderer ever sees the payload
- at most one scanner is active, and a new scan stops the old one first
- device failures are reported once and never retried
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from pragmatica.classroom.store import ProgressStore
from pragmatica.config import DEFAULT_BACKUP_MAX_BYTES
from pragmatica.errors import TransportError

from .codec import encode_backup

logger = logging.getLogger(__name__)

RENDER_FAILED_MESSAGE = "QR code could not be generated."
SCANNER_FAILED_MESSAGE = "Camera could not be started."


class QrRenderer(Protocol):
    def render(self, text: str) -> Any:
        """Return an image for text. Raises TransportError on failure."""
        ...


class QrScanner(Protocol):
    def start(self, on_decode: Callable[[str], None]) -> None:
        """Begin scanning; on_decode receives each decoded string."""
        ...

    def stop(self) -> None: ...


@dataclass
class RenderResult:
    ok: bool
    image: Any = None
    text: Optional[str] = None
    size: int = 0
    overage: int = 0
    message: Optional[str] = None


@dataclass
class ScanOutcome:
    ok: bool
    message: Optional[str] = None


def render_backup(
    store: ProgressStore,
    renderer: QrRenderer,
    now: Optional[int] = None,
    max_bytes: int = DEFAULT_BACKUP_MAX_BYTES,
) -> RenderResult:
    """Encode the store and hand the string to the renderer if it fits."""
    encoded = encode_backup(store, now=now, max_bytes=max_bytes)
    if not encoded.ok:
        return RenderResult(ok=False, size=encoded.size, overage=encoded.overage, message=encoded.message)

    try:
        image = renderer.render(encoded.text)
    except TransportError as exc:
        logger.error(f"QR render failed: {exc}")
        return RenderResult(ok=False, text=encoded.text, size=encoded.size, message=RENDER_FAILED_MESSAGE)
    return RenderResult(ok=True, image=image, text=encoded.text, size=encoded.size)


class ScannerSession:
    """
    Owns the single active scanner.

    Each scan is one-shot: the first decoded string stops the scanner
    before it is handed to the caller.
    """

    def __init__(self):
        self._active: Optional[QrScanner] = None

    @property
    def active(self) -> bool:
        return self._active is not None

    def start(self, scanner: QrScanner, on_text: Callable[[str], None]) -> ScanOutcome:
        self.stop()

        def handle(text: str) -> None:
            if self._active is not scanner:
                return
            self.stop()
            on_text(text)

        self._active = scanner
        try:
            scanner.start(handle)
        except TransportError as exc:
            logger.error(f"Scanner failed to start: {exc}")
            self._active = None
            return ScanOutcome(ok=False, message=SCANNER_FAILED_MESSAGE)
        return ScanOutcome(ok=True)

    def stop(self) -> ScanOutcome:
        if self._active is None:
            return ScanOutcome(ok=True)
        scanner, self._active = self._active, None
        try:
            scanner.stop()
        except TransportError as exc:
            logger.warning(f"Scanner did not stop cleanly: {exc}")
            return ScanOutcome(ok=False, message=str(exc))
        return ScanOutcome(ok=True)
