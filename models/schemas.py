from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class Hashes(BaseModel):
    model_config = ConfigDict(frozen=True)

    md5: str
    sha1: str
    sha256: str


class StaticAnalysisResults(BaseModel):
    model_config = ConfigDict(frozen=True)

    extracted_strings: List[str]
    file_type_guess: str


class AnalysisRecord(BaseModel):
    """Response body of a completed upload analysis."""

    model_config = ConfigDict(frozen=True)

    message: str
    filename: str
    size: int
    hashes: Hashes
    hash_match_malware: bool
    static_analysis: StaticAnalysisResults
    claude_ai_interpretation: Optional[str] = None


class UploadErrorResponse(BaseModel):
    error: str
    message: str


class HelloResponse(BaseModel):
    message: str
