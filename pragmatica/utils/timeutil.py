"""Timestamp helpers. All progress timestamps are integer epoch milliseconds."""

import math
from datetime import datetime, timezone
from typing import Any, Optional

DAY_MS = 86_400_000

# Plausible range for any stored progress timestamp
EPOCH_FLOOR_MS = 1_577_836_800_000  # 2020-01-01T00:00:00Z
MAX_FUTURE_MS = 365 * DAY_MS


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def is_finite_number(value: Any) -> bool:
    """True for real ints/floats (bools excluded) that are not NaN or infinite."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (2.5 -> 3), unlike round()."""
    return int(math.floor(value + 0.5))


def is_plausible_timestamp(value: Any, now: Optional[int] = None) -> bool:
    """True for finite numbers between 2020-01-01 and one year after now."""
    if not is_finite_number(value):
        return False
    current = now if now is not None else now_ms()
    return EPOCH_FLOOR_MS <= value <= current + MAX_FUTURE_MS


def parse_timestamp(value: Any, now: Optional[int] = None) -> Optional[int]:
    """
    Coerce a stored timestamp to epoch milliseconds.

    Accepts finite numbers and ISO-8601 strings (older saves wrote ISO
    strings). Anything else, or a time outside the plausible range,
    yields None.
    """
    if is_finite_number(value):
        return int(value) if is_plausible_timestamp(value, now) else None
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value[:64].replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        millis = int(parsed.timestamp() * 1000)
        return millis if is_plausible_timestamp(millis, now) else None
    return None


def iso_from_ms(value: int) -> str:
    """Format epoch milliseconds as an ISO-8601 UTC string."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat().replace("+00:00", "Z")
