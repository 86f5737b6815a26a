"""Debug-log views of store entities with personal data masked.

Fields opt in to masking through a ``json_schema_extra`` marker on the
model field::

    driver_phone: str | None = Field(default=None, json_schema_extra={"redact": "partial"})

``"full"`` replaces the value entirely; ``"partial"`` keeps only the last
few characters, enough to tell two phone numbers apart in a log.
"""

from __future__ import annotations

import functools
from typing import Any, Literal

from pydantic import BaseModel

RedactMode = Literal["full", "partial"]

REDACTED = "<redacted>"
_VISIBLE_TAIL = 3


@functools.cache
def redacted_fields(model_cls: type[BaseModel]) -> dict[str, RedactMode]:
    """Return ``{field_name: mode}`` for every field of *model_cls* carrying a redact marker."""
    marked: dict[str, RedactMode] = {}
    for name, info in model_cls.model_fields.items():
        extra = info.json_schema_extra
        if isinstance(extra, dict) and extra.get("redact") in ("full", "partial"):
            marked[name] = extra["redact"]  # type: ignore[assignment]
    return marked


def mask_tail(value: str, visible: int = _VISIBLE_TAIL) -> str:
    """Mask all but the last *visible* non-separator characters of *value*.

    ``"+233 20 123 4567"`` becomes ``"***567"``; the original length is hidden.
    """
    compact = "".join(ch for ch in value if not ch.isspace() and ch != "-")
    if len(compact) <= visible:
        return "*" * len(compact)
    return f"***{compact[-visible:]}"


def redact_for_log(entity: BaseModel) -> dict[str, Any]:
    """JSON-mode dump of *entity* keyed by field name, with marked fields masked.

    Absent values stay ``None`` so logs still show whether a field was set.
    """
    dumped = entity.model_dump(mode="json")
    for name, mode in redacted_fields(type(entity)).items():
        value = dumped.get(name)
        if value is None:
            continue
        dumped[name] = mask_tail(str(value)) if mode == "partial" else REDACTED
    return dumped
