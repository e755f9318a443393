import time
import uuid


def new_id() -> str:
    return uuid.uuid4().hex


def now_millis() -> int:
    return int(time.time() * 1000)


def parse_counter(value, field: str) -> int:
    """Parse a non-negative counter coming from a string-only store."""
    try:
        counter = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Field '{field}' is not an integer: {value!r}")
    if counter < 0:
        raise ValueError(f"Field '{field}' is negative: {counter}")
    return counter


def is_text(value) -> bool:
    """True for a string with at least one non-blank character."""
    return isinstance(value, str) and len(value.strip()) > 0
