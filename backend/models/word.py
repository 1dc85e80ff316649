"""
Word Record - the definition value moved between cache, store and sources.

A record groups definition strings under part-of-speech headers:
- groups[i]: header label (e.g. "danh từ")
- entries[i]: definitions listed under groups[i]

Records are immutable. Tiers replace stored bytes/rows wholesale.
"""
import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


def _reject_constant(name: str):
    # NaN, Infinity and -Infinity are not valid record values
    raise ValueError(f"non-finite number {name} in record bytes")


@dataclass(frozen=True)
class WordRecord:
    key: str
    groups: Tuple[str, ...] = ()
    entries: Tuple[Tuple[str, ...], ...] = ()
    created_at: int = 0
    updated_at: int = 0

    def __post_init__(self):
        # Accept lists from JSON/ORM and freeze them
        object.__setattr__(self, "groups", tuple(self.groups))
        object.__setattr__(
            self, "entries", tuple(tuple(defs) for defs in self.entries)
        )

    def is_complete(self) -> bool:
        """True when every group has its aligned entries slot."""
        return len(self.entries) == len(self.groups)

    def stamped(self, now: Optional[int] = None) -> "WordRecord":
        """Copy with created_at/updated_at set to now."""
        ts = int(time.time()) if now is None else int(now)
        return WordRecord(
            key=self.key,
            groups=self.groups,
            entries=self.entries,
            created_at=ts,
            updated_at=ts,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "key": self.key,
            "groups": list(self.groups),
            "entries": [list(defs) for defs in self.entries],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WordRecord":
        """
        Build a record from its dict form.

        Raises:
            ValueError: If required fields are missing or mistyped
        """
        if not isinstance(data, dict):
            raise ValueError(f"record must be an object, got {type(data).__name__}")

        key = data.get("key")
        if not isinstance(key, str) or not key:
            raise ValueError("record key must be a non-empty string")

        groups = data.get("groups", [])
        entries = data.get("entries", [])
        if not isinstance(groups, list) or not all(isinstance(g, str) for g in groups):
            raise ValueError("record groups must be a list of strings")
        if not isinstance(entries, list) or not all(
            isinstance(defs, list) and all(isinstance(d, str) for d in defs)
            for defs in entries
        ):
            raise ValueError("record entries must be a list of string lists")

        try:
            created_at = int(data.get("created_at", 0))
            updated_at = int(data.get("updated_at", 0))
        except (OverflowError, TypeError, ValueError):
            raise ValueError("record timestamps must be finite integers")

        return cls(
            key=key,
            groups=groups,
            entries=entries,
            created_at=created_at,
            updated_at=updated_at,
        )

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), ensure_ascii=False).encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes) -> "WordRecord":
        """
        Decode the cache wire format.

        Raises:
            ValueError: On invalid UTF-8/JSON or malformed record
        """
        try:
            data = json.loads(raw.decode("utf-8"), parse_constant=_reject_constant)
        except (UnicodeDecodeError, RecursionError, ValueError) as e:
            raise ValueError(f"undecodable record bytes: {e}")
        return cls.from_dict(data)


@dataclass
class WordBuilder:
    """
    Accumulates groups and entries while a source page is being parsed.

    add_group() always opens a new entries slot, and add_entry() is ignored
    until a group exists, so build() always returns a complete record.
    """
    key: str
    groups: List[str] = field(default_factory=list)
    entries: List[List[str]] = field(default_factory=list)
    dropped: int = 0

    def add_group(self, label: str) -> None:
        self.groups.append(label.strip())
        self.entries.append([])

    def add_entry(self, text: str) -> None:
        if not self.groups:
            self.dropped += 1
            return
        self.entries[-1].append(text.strip())

    def __len__(self) -> int:
        return len(self.groups)

    def build(self, now: Optional[int] = None) -> WordRecord:
        return WordRecord(key=self.key, groups=self.groups, entries=self.entries).stamped(now)
