import asyncio
import re
from typing import List, Optional, Set

from config.settings import settings
from utils.logger import get_logger

logger = get_logger(__name__)

# Printable ASCII, space through tilde
PRINTABLE_RUN = re.compile(rb"[\x20-\x7e]+")


class StringExtractionService:
    """
    Extracts a bounded sample of printable ASCII strings embedded in a binary.

    Runs of printable bytes shorter than ``min_length`` are ignored. Scanning
    stops as soon as ``max_count`` distinct strings have been collected, so
    when the cap binds the sample holds the first distinct runs in file order.
    The returned list is always sorted.
    """

    def __init__(
        self,
        *,
        min_length: Optional[int] = None,
        max_count: Optional[int] = None,
    ) -> None:
        self.min_length = settings.STRINGS_MIN_LENGTH if min_length is None else min_length
        self.max_count = settings.STRINGS_MAX_COUNT if max_count is None else max_count

    def extract(self, file_data: bytes, min_length: int, max_count: int) -> List[str]:
        if max_count <= 0 or not file_data:
            return []

        min_length = max(1, min_length)
        found: Set[str] = set()

        for match in PRINTABLE_RUN.finditer(file_data):
            run = match.group(0)
            if len(run) < min_length:
                continue
            try:
                text = run.decode("ascii")
            except UnicodeDecodeError:
                continue
            found.add(text)
            if len(found) >= max_count:
                break

        return sorted(found)

    async def extract_strings(self, file_data: bytes) -> List[str]:
        strings = await asyncio.to_thread(
            self.extract, file_data, self.min_length, self.max_count
        )
        logger.debug(
            "String extraction finished | count=%s | min_length=%s | max_count=%s",
            len(strings),
            self.min_length,
            self.max_count,
        )
        return strings
