import re
from dataclasses import dataclass

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def sanitize_filename(filename: str) -> str:
    """Strip directory components and control characters from an upload name."""
    if not filename:
        return ""
    name = filename.replace("\\", "/").split("/")[-1]
    name = _CONTROL_CHARS.sub("", name).strip()
    if name in (".", ".."):
        return ""
    return name


@dataclass(frozen=True)
class ContentBuffer:
    """Uploaded bytes plus their declared name, owned by a single analysis."""

    filename: str
    content: bytes

    @classmethod
    def capture(cls, filename: str, content: bytes) -> "ContentBuffer":
        return cls(filename=sanitize_filename(filename or ""), content=bytes(content or b""))

    @property
    def size(self) -> int:
        return len(self.content)
