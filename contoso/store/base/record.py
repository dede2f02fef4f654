from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping

# rowversion-style token width
VERSION_TOKEN_SIZE = 8


@dataclass(frozen=True)
class Record:
    """
    Immutable snapshot of a stored row.

    record_id : primary key
    fields    : named scalar values (read-only view)
    version   : opaque token, replaced by the store on every write
    """
    record_id: int
    fields: Mapping[str, Any] = field(default_factory=dict)
    version: bytes = b""

    def __post_init__(self):
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    # fields is a read-only view and cannot be hashed
    def __hash__(self) -> int:
        return hash((self.record_id, self.version))

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def get(self, name: str, default=None) -> Any:
        return self.fields.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.fields)

    def with_fields(self, updates: Mapping[str, Any]) -> "Record":
        merged = dict(self.fields)
        merged.update(updates)
        return Record(self.record_id, merged, self.version)

    def with_version(self, version: bytes) -> "Record":
        return Record(self.record_id, self.fields, version)

    @classmethod
    def placeholder(cls) -> "Record":
        """Empty record used where no stored row exists."""
        return cls(record_id=0, fields={}, version=b"")


@dataclass(frozen=True)
class EditIntent:
    """Field edits a caller wants applied, plus the token it last read."""
    record_id: int
    token: bytes
    edits: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "edits", MappingProxyType(dict(self.edits)))

    def __hash__(self) -> int:
        return hash((self.record_id, self.token))

    @property
    def edited_fields(self):
        return tuple(self.edits.keys())
