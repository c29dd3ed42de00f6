"""
Data Entity

Base for observable domain objects whose state lives in one dataclass.
State only changes through _update(), which emits 'updated' with the
names of the fields that actually changed.
"""
import dataclasses
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, List, TypeVar

from ..event_emitter import EventEmitter
from ..exceptions import DomainError

D = TypeVar('D')


def serialize_value(value: Any) -> Any:
    """Convert a field value to plain JSON-friendly data"""
    if isinstance(value, DomainError):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: serialize_value(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    if isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    return value


class DataEntity(EventEmitter, Generic[D]):
    """
    Observable wrapper around a dataclass

    Events:
    - updated(List[str]): names of the fields changed by one _update() call
    """

    def __init__(self, data: D):
        super().__init__()
        self.data: D = data

    def _update(self, **delta) -> List[str]:
        """
        Merge a partial update and emit 'updated' with the changed keys

        Internal: only services and owning aggregates call this.
        Returns the changed keys, no event is emitted if nothing changed.
        """
        changed = {
            key: value for key, value in delta.items()
            if getattr(self.data, key) != value
        }
        if not changed:
            return []
        self.data = dataclasses.replace(self.data, **changed)
        keys = list(changed)
        self.emit("updated", keys)
        return keys

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot of the current data"""
        return serialize_value(self.data)
