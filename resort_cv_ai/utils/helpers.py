"""Helper utilities for the Resort CV AI system."""

import re
from typing import Any, List

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
# North-American style: (555) 111-2222, 555-111-2222, 555.111.2222, +1 555 111 2222
PHONE_PATTERN = re.compile(r"(?:\+?1[-.\s]?)?(?:\(\d{3}\)\s*|\d{3}[-.\s])\d{3}[-.\s]\d{4}")


def digits_only(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def coerce_to_list(value: Any) -> List[Any]:
    """Wrap a scalar in a list; drop None and blank strings; pass lists through."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        items = list(value)
    else:
        items = [value]
    return [v for v in items if v is not None and not (isinstance(v, str) and not v.strip())]
