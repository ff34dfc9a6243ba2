# src/statustracker/parse.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


def _get(d: Any, path: str, default=None):
    """Walk nested dicts along an "a.b.c" path."""
    cur = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def _as_number(val: Any) -> Optional[float]:
    # JSON numbers only; bool is an int subclass but not a point value
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        return None
    try:
        f = float(val)
    except OverflowError:
        return None
    # NaN and Infinity literals are not estimates
    return f if math.isfinite(f) else None


@dataclass(frozen=True)
class IssueRecord:
    id: str
    key: str
    fields: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "IssueRecord":
        return cls(
            id=str(raw.get("id") or ""),
            key=str(raw.get("key") or ""),
            fields=dict(raw.get("fields") or {}),
        )

    def value(self, field_id: str) -> Any:
        return self.fields.get(field_id)

    def numeric_field(self, field_id: str) -> Optional[float]:
        return _as_number(self.fields.get(field_id))

    def status_category(self) -> Optional[str]:
        name = _get(self.fields, "status.statusCategory.name")
        return name if isinstance(name, str) else None
