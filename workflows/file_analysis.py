import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from models.content import ContentBuffer
from models.schemas import AnalysisRecord, Hashes, StaticAnalysisResults
from services.file_hashing import FileHashingService
from services.hash_lookup import HashLookupService
from services.interpretation import InterpretationOutcome, InterpretationService
from services.mime_sniffing import MimeSniffingService
from services.string_extraction import StringExtractionService
from utils.logger import get_logger

logger = get_logger(__name__)

SUCCESS_MESSAGE = "File analyzed successfully!"
INTERPRETATION_ERROR_PREFIX = "Claude AI Error: "


class InputError(ValueError):
    """Upload rejected before analysis: missing filename or empty content."""


class PipelinePhase(str, Enum):
    VALIDATING = "validating"
    ANALYZING = "analyzing"
    INTERPRETING = "interpreting"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class AnalysisRecordBuilder:
    """Every analysis field of a record, with the interpretation bound last."""

    filename: str
    size: int
    hashes: Hashes
    hash_match_malware: bool
    extracted_strings: List[str]
    file_type_guess: str

    def _build(self, interpretation: Optional[str]) -> AnalysisRecord:
        return AnalysisRecord(
            message=SUCCESS_MESSAGE,
            filename=self.filename,
            size=self.size,
            hashes=self.hashes,
            hash_match_malware=self.hash_match_malware,
            static_analysis=StaticAnalysisResults(
                extracted_strings=list(self.extracted_strings),
                file_type_guess=self.file_type_guess,
            ),
            claude_ai_interpretation=interpretation,
        )

    def preliminary(self) -> AnalysisRecord:
        return self._build(None)

    def build(self, outcome: InterpretationOutcome) -> AnalysisRecord:
        if outcome.succeeded:
            return self._build(outcome.text)
        return self._build(f"{INTERPRETATION_ERROR_PREFIX}{outcome.error}")


class FileAnalysisWorkflow:
    def __init__(
        self,
        *,
        signatures: HashLookupService,
        interpreter: InterpretationService,
        file_hashing_service: Optional[FileHashingService] = None,
        string_extraction_service: Optional[StringExtractionService] = None,
        mime_sniffing_service: Optional[MimeSniffingService] = None,
    ) -> None:
        self.hash_lookup_service = signatures
        self.interpretation_service = interpreter
        self.file_hashing_service = file_hashing_service or FileHashingService()
        self.string_extraction_service = string_extraction_service or StringExtractionService()
        self.mime_sniffing_service = mime_sniffing_service or MimeSniffingService()

    async def analyze(self, filename: str, content: bytes) -> AnalysisRecord:
        """
        Run the full analysis of one uploaded file.

        Raises InputError when the filename or the content is empty. Every
        other outcome, including a failed interpretation, yields a record.
        """
        self._enter(PipelinePhase.VALIDATING, filename)
        buffer = ContentBuffer.capture(filename, content)
        try:
            self._validate(buffer)
        except InputError:
            self._enter(PipelinePhase.REJECTED, filename)
            raise

        self._enter(PipelinePhase.ANALYZING, buffer.filename)
        builder = await self._run_static_analysis(buffer)

        self._enter(PipelinePhase.INTERPRETING, buffer.filename)
        outcome = await self.interpretation_service.interpret(builder.preliminary())

        self._enter(PipelinePhase.FINALIZING, buffer.filename)
        record = builder.build(outcome)

        self._enter(PipelinePhase.COMPLETED, buffer.filename)
        logger.info(
            "File analyzed | filename=%s | size=%s | sha256=%s | malware_match=%s | interpretation=%s",
            record.filename,
            record.size,
            record.hashes.sha256,
            record.hash_match_malware,
            "ok" if outcome.succeeded else "failed",
        )
        return record

    def _validate(self, buffer: ContentBuffer) -> None:
        if not buffer.filename or not buffer.content:
            logger.warning(
                "Rejecting upload | filename=%r | size=%s",
                buffer.filename,
                buffer.size,
            )
            raise InputError("No file uploaded or file is empty.")

    async def _run_static_analysis(self, buffer: ContentBuffer) -> AnalysisRecordBuilder:
        (hashes, is_malware), extracted_strings, file_type_guess = await asyncio.gather(
            self._hash_and_match(buffer.content),
            self.string_extraction_service.extract_strings(buffer.content),
            self.mime_sniffing_service.sniff_mime(buffer.content),
        )

        return AnalysisRecordBuilder(
            filename=buffer.filename,
            size=buffer.size,
            hashes=hashes,
            hash_match_malware=is_malware,
            extracted_strings=extracted_strings,
            file_type_guess=file_type_guess,
        )

    async def _hash_and_match(self, file_data: bytes) -> Tuple[Hashes, bool]:
        hashes = await self.file_hashing_service.hash_file(file_data)
        return hashes, self.hash_lookup_service.matches(hashes.sha256)

    def _enter(self, phase: PipelinePhase, filename: str) -> None:
        logger.debug("Pipeline phase | phase=%s | filename=%s", phase.value, filename)
