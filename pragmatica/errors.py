"""
Exception types for Pragmatica.

Raised inside the progress subsystem and caught at its public entry points,
which report failures as result objects instead of propagating them.
"""


class PragmaticaError(Exception):
    """Base class for all Pragmatica errors."""


class CurriculumError(PragmaticaError):
    """Curriculum file is missing or does not describe a valid course."""


class BackupFormatError(PragmaticaError):
    """Backup payload is not JSON or does not have the expected wrapper shape."""


class UnsupportedVersionError(BackupFormatError):
    """Backup or import file declares a version this build cannot read."""


class PayloadTooLargeError(PragmaticaError):
    """Serialized backup does not fit the transport budget."""

    def __init__(self, size: int, max_bytes: int):
        self.size = size
        self.max_bytes = max_bytes
        self.overage = size - max_bytes
        super().__init__(f"Backup is too large by {self.overage} bytes.")


class StorageError(PragmaticaError):
    """Durable storage failed to read or write a value."""


class StorageQuotaError(StorageError):
    """Durable storage refused a write because it is full."""


class TransportError(PragmaticaError):
    """QR rendering or scanning device failed."""
