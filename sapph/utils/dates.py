import time
from datetime import date, datetime, timezone
from typing import Any, Optional

__all__ = ["age_from_dob", "now_ms", "parse_dob", "utc_now_iso"]

# Formats the onboarding flow has stored over time
_FALLBACK_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%d.%m.%Y")


def parse_dob(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def age_from_dob(dob: Any, today: Optional[date] = None) -> Optional[int]:
    """Whole years since ``dob``; None when unparseable or not positive."""
    birth = parse_dob(dob)
    if birth is None:
        return None
    today = today or date.today()
    age = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        age -= 1
    return age if age > 0 else None


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def now_ms() -> int:
    """Current time as epoch milliseconds, the timestamp unit of likes and messages."""
    return int(time.time() * 1000)
