# src/statustracker/fields.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

# Not a real custom field: Jira returns status (and its category) under this id.
STATUS_FIELD_ID = "status"


@dataclass(frozen=True)
class FieldDescriptor:
    id: str
    display_name: str

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "FieldDescriptor":
        return cls(id=str(raw.get("id") or ""), display_name=str(raw.get("name") or ""))


def resolve_field_ids(all_fields: Iterable[FieldDescriptor], display_name: str) -> List[str]:
    """
    Every field id whose display name is exactly ``display_name``.

    Jira allows several custom fields with the same name (e.g. two "Story Points"
    fields from different plugins), so all of them are returned, in the order
    Jira listed them. An empty list means the field does not exist here.
    """
    return [f.id for f in all_fields if f.display_name == display_name]
