"""
MIME Sniffing Service - filetype integration

Guesses a media type and extension from the magic bytes at the start of a
buffer. Absence of a match is an expected outcome and is reported as the
literal ``"unknown"``; this service never raises.
"""

import asyncio
from typing import Dict, Optional

import filetype

from utils.logger import get_logger

logger = get_logger(__name__)


class MimeSniffingService:
    """Best-effort file type guess backed by the filetype signature tables."""

    UNKNOWN = "unknown"
    # filetype only inspects the leading bytes of a file
    SAMPLE_SIZE = 8192

    def guess(self, file_data: bytes) -> str:
        if not file_data:
            return self.UNKNOWN

        filetype_result = self._detect_with_filetype(file_data[: self.SAMPLE_SIZE])
        if not filetype_result:
            return self.UNKNOWN

        return f"{filetype_result['mime']} (.{filetype_result['extension']})"

    async def sniff_mime(self, file_data: bytes) -> str:
        file_type_guess = await asyncio.to_thread(self.guess, file_data)
        logger.debug(f"File type guess: {file_type_guess}")
        return file_type_guess

    def _detect_with_filetype(self, file_data: bytes) -> Optional[Dict[str, str]]:
        """
        Detect MIME type using filetype library
        Returns filetype result or None if detection fails
        """
        try:
            kind = filetype.guess(file_data)
            if kind:
                return {
                    "mime": kind.mime,
                    "extension": kind.extension
                }
            return None
        except Exception as e:
            logger.debug(f"Filetype detection failed: {e}")
            return None
