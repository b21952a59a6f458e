import re
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Set, Union

from config.settings import Settings
from utils.logger import get_logger

logger = get_logger(__name__)

SHA256_HEX = re.compile(r"^[0-9a-f]{64}$")

# SHA-256 of the EICAR antivirus test file
DEFAULT_MALWARE_HASHES: FrozenSet[str] = frozenset(
    {
        "275a021bbfb6489e54d471899f7db9d1663fc695ec2fe2a2c4538aabf651fd0f",
    }
)


def load_signatures(path: Union[str, Path]) -> Set[str]:
    """Read SHA-256 digests from a text file, one per line.

    Blank lines and ``#`` comments are ignored. Entries are lower-cased;
    anything that is not a 64 character hex digest is skipped with a warning.
    """
    signatures: Set[str] = set()
    source = Path(path)

    with source.open("r", encoding="utf-8") as handle:
        for line_number, raw_line in enumerate(handle, start=1):
            entry = raw_line.split("#", 1)[0].strip().lower()
            if not entry:
                continue
            if not SHA256_HEX.match(entry):
                logger.warning(
                    "Skipping invalid signature entry | file=%s | line=%s",
                    source,
                    line_number,
                )
                continue
            signatures.add(entry)

    logger.info("Loaded malware signatures | file=%s | count=%s", source, len(signatures))
    return signatures


class HashLookupService:
    def __init__(self, signatures: Optional[Iterable[str]] = None) -> None:
        """Create a read-only known-bad hash lookup.

        Args:
            signatures: SHA-256 hex digests to match against. Defaults to
                ``DEFAULT_MALWARE_HASHES``. The set is frozen here and never
                changes afterwards.
        """
        source = DEFAULT_MALWARE_HASHES if signatures is None else signatures
        self._signatures: FrozenSet[str] = frozenset(source)

    @classmethod
    def from_settings(cls, settings: Settings) -> "HashLookupService":
        signatures = set(DEFAULT_MALWARE_HASHES)
        if settings.MALWARE_HASHES_FILE:
            signatures |= load_signatures(settings.MALWARE_HASHES_FILE)
        return cls(signatures)

    @property
    def signatures(self) -> FrozenSet[str]:
        return self._signatures

    def __len__(self) -> int:
        return len(self._signatures)

    def matches(self, sha256_hash: str) -> bool:
        return sha256_hash in self._signatures
