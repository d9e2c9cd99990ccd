"""
Gap analysis domain models.

Evidence is the unit of reasoning: every check the analyzer performs
appends one immutable Evidence item, and a requirement's confidence is a
pure function of its evidence list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from specgap.specs.domain.models import (
    GapStatus,
    Priority,
    ProjectRoute,
    SkippedDocument,
    SpecFormat,
)

if TYPE_CHECKING:
    from specgap.specs.application.format_detector import FormatDetectionResult


class EvidenceKind(str, Enum):
    """Fixed evidence taxonomy."""

    FILE_EXISTS = "file_exists"
    EXACT_MATCH = "exact_match"
    SIGNATURE_VERIFIED = "signature_verified"
    TEST_FILE_EXISTS = "test_file_exists"
    STUB = "stub"
    NAME_SIMILARITY = "name_similarity"
    FILE_NOT_FOUND = "file_not_found"
    FUNCTION_NOT_FOUND = "function_not_found"
    TEST_FILE_MISSING = "test_file_missing"


EVIDENCE_WEIGHTS: dict[EvidenceKind, int] = {
    EvidenceKind.FILE_EXISTS: 30,
    EvidenceKind.EXACT_MATCH: 50,
    EvidenceKind.SIGNATURE_VERIFIED: 40,
    EvidenceKind.TEST_FILE_EXISTS: 20,
    EvidenceKind.STUB: -35,
    EvidenceKind.NAME_SIMILARITY: 10,
    EvidenceKind.FILE_NOT_FOUND: -50,
    EvidenceKind.FUNCTION_NOT_FOUND: -40,
    EvidenceKind.TEST_FILE_MISSING: -20,
}

# Test evidence moves confidence only, never status.
TEST_EVIDENCE_KINDS = frozenset({EvidenceKind.TEST_FILE_EXISTS, EvidenceKind.TEST_FILE_MISSING})


@dataclass(frozen=True)
class Evidence:
    """One observation about a requirement's implementation."""

    kind: EvidenceKind
    description: str
    weight: int
    location: str | None = None
    line: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": self.kind.value,
            "description": self.description,
            "weight": self.weight,
            "location": self.location,
            "line": self.line,
        }


@dataclass(frozen=True)
class EffortEstimate:
    hours: int
    confidence: str = "medium"
    method: str = "complexity"
    optimistic: int = 0
    pessimistic: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hours": self.hours,
            "confidence": self.confidence,
            "method": self.method,
            "range": {"optimistic": self.optimistic, "pessimistic": self.pessimistic},
        }


@dataclass(frozen=True)
class Gap:
    """
    A requirement whose implementation is missing, stubbed or partial.

    Attributes:
        id: Stable identifier (same inputs, same id)
        confidence: 0-100, how sure the analyzer is about status
        expected_locations: Candidate paths derived from the requirement
        actual_locations: Where positive evidence was found
        dependencies: Requirement ids named by "depends on <ID>" phrases
    """

    id: str
    spec_id: str
    requirement_id: str
    description: str
    status: GapStatus
    confidence: int
    evidence: tuple[Evidence, ...]
    expected_locations: tuple[str, ...]
    actual_locations: tuple[str, ...]
    effort: EffortEstimate
    priority: Priority
    impact: str
    recommendation: str
    dependencies: tuple[str, ...] = ()

    @property
    def qualified_requirement_id(self) -> str:
        return f"{self.spec_id}:{self.requirement_id}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "spec_id": self.spec_id,
            "requirement_id": self.requirement_id,
            "description": self.description,
            "status": self.status.value,
            "confidence": self.confidence,
            "evidence": [e.to_dict() for e in self.evidence],
            "expected_locations": list(self.expected_locations),
            "actual_locations": list(self.actual_locations),
            "effort": self.effort.to_dict(),
            "priority": self.priority.value,
            "impact": self.impact,
            "recommendation": self.recommendation,
            "dependencies": list(self.dependencies),
        }


class GapAnalyzerConfig(BaseModel):
    """
    Per-analysis options.

    Validated on construction; unknown keys are rejected so a typo in a
    config file is reported instead of silently ignored.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    confidence_threshold: int = Field(default=50, ge=0, le=100, description="Drop gaps below this confidence")
    include_stubs: bool = Field(default=True, description="Report stub gaps")
    include_partial: bool = Field(default=True, description="Report partial gaps")
    check_test_coverage: bool = Field(default=True, description="Look for tests of claimed files")
    format_override: SpecFormat | None = Field(default=None, description="Force a specification format")
    route: ProjectRoute | None = Field(default=None, description="Project route hint")
    source_extensions: tuple[str, ...] = Field(default=(".py",), description="Source file extensions to search")
    max_workers: int = Field(default=1, ge=1, description="Concurrent requirement checks")
    cache_parsed_files: bool = Field(default=True, description="Reuse parse results within a run")
    verbose: bool = Field(default=False, description="Log per-requirement details")


@dataclass
class GapAnalysisResult:
    """
    Outcome of a batch analysis.

    Attributes:
        gaps: Gaps that survived suppression and the confidence threshold
        total_before_threshold: Gap count before the threshold filter
        skipped_documents: Specification documents that could not be parsed
        unparsed_sources: Source files that could not be parsed
    """

    gaps: list[Gap]
    format: SpecFormat
    detection: FormatDetectionResult | None = None
    spec_count: int = 0
    total_before_threshold: int = 0
    skipped_documents: list[SkippedDocument] = field(default_factory=list)
    unparsed_sources: list[str] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.skipped_documents or self.unparsed_sources)

    def warning_summary(self) -> str | None:
        """One-line summary of skipped inputs, or None when nothing was skipped."""
        if not self.has_warnings:
            return None
        parts = []
        if self.skipped_documents:
            parts.append(f"{len(self.skipped_documents)} specification document(s) skipped")
        if self.unparsed_sources:
            parts.append(f"{len(self.unparsed_sources)} source file(s) could not be parsed")
        return "; ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "format": self.format.value,
            "spec_count": self.spec_count,
            "total_before_threshold": self.total_before_threshold,
            "gaps": [g.to_dict() for g in self.gaps],
            "skipped_documents": [{"path": d.path, "reason": d.reason} for d in self.skipped_documents],
            "unparsed_sources": list(self.unparsed_sources),
        }
