"""
Metadata describing a stored file.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class FileInfo:
    key: str
    size: int
    created: datetime
    modified: datetime

    @classmethod
    def from_stat(cls, key: str, st) -> "FileInfo":
        # st_birthtime only exists on some platforms
        created = getattr(st, "st_birthtime", st.st_ctime)
        return cls(
            key=key,
            size=st.st_size,
            created=datetime.fromtimestamp(created, timezone.utc),
            modified=datetime.fromtimestamp(st.st_mtime, timezone.utc),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "size": self.size,
            "created": self.created.isoformat(),
            "modified": self.modified.isoformat(),
        }
