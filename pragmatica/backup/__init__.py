"""
Pragmatica Backup - Move progress between devices.

- codec: compact QR backup string (encode/decode/restore)
- slim: shrink progress to fit the QR byte ceiling
- transfer: JSON progress file import/export
- transport: renderer/scanner seam for QR devices
"""

from .slim import is_non_empty, slim_module_mastery, slim_user_progress, strip_defaults

from .codec import (
    BACKUP_VERSION,
    EncodeResult,
    DecodeResult,
    build_payload,
    serialize_payload,
    payload_size,
    check_capacity,
    encode_backup,
    decode_backup,
    restore_backup,
)

from .transfer import (
    ImportResult,
    validate_progress_import,
    import_progress_file,
    export_progress_file,
)

from .transport import (
    QrRenderer,
    QrScanner,
    RenderResult,
    ScanOutcome,
    ScannerSession,
    render_backup,
)

__all__ = [
    # Slim
    "is_non_empty",
    "slim_module_mastery",
    "slim_user_progress",
    "strip_defaults",
    # Codec
    "BACKUP_VERSION",
    "EncodeResult",
    "DecodeResult",
    "build_payload",
    "serialize_payload",
    "payload_size",
    "check_capacity",
    "encode_backup",
    "decode_backup",
    "restore_backup",
    # Transfer
    "ImportResult",
    "validate_progress_import",
    "import_progress_file",
    "export_progress_file",
    # Transport
    "QrRenderer",
    "QrScanner",
    "RenderResult",
    "ScanOutcome",
    "ScannerSession",
    "render_backup",
]
