import secrets
from typing import Optional

AUTH_HEADER = "secret"


def _is_visible_ascii(value: str) -> bool:
    return all(c == "\t" or 0x20 <= ord(c) < 0x7F for c in value)


def authorize(header_value: Optional[str], expected: str) -> bool:
    """True only when the header is present, well formed and equal to ``expected``."""
    if header_value is None:
        return False
    if not _is_visible_ascii(header_value):
        return False
    return secrets.compare_digest(header_value.encode("ascii"), expected.encode("utf-8"))
