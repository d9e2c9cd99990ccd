"""
Gap Analyzer - reconciles specifications with source code.

For every requirement the analyzer collects Evidence (claimed files and
functions, or keyword name matches when nothing is claimed), derives a
status, scores confidence and emits a Gap unless the requirement is
confidently complete or its status is switched off. Batch entry points
then drop gaps below the confidence threshold (inclusive boundary).

Usage:
    analyzer = GapAnalyzer(GapAnalyzerConfig(confidence_threshold=60))
    result = await analyzer.analyze_project(project_root)
    if result.has_warnings:
        print(result.warning_summary())
"""

from __future__ import annotations

import math
import os
import re
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from specgap.analysis.application.confidence_scorer import ConfidenceScorer
from specgap.analysis.application.file_searcher import FileSearcher
from specgap.analysis.application.keywords import extract_keywords
from specgap.analysis.application.status_rules import derive_status
from specgap.analysis.domain.models import (
    EffortEstimate,
    Evidence,
    EvidenceKind,
    Gap,
    GapAnalysisResult,
    GapAnalyzerConfig,
)
from specgap.ast.application.parser import CodeASTParser, ParsedFileCache
from specgap.ast.application.registry import ASTProviderRegistry, default_registry
from specgap.shared.domain.exceptions import GapDetectionError, SpecParsingError
from specgap.shared.infrastructure.logging import get_logger
from specgap.shared.infrastructure.parallel import BoundedBatchExecutor
from specgap.specs.application.format_detector import FormatDetectionResult
from specgap.specs.application.unified_reader import UnifiedSpecReader
from specgap.specs.domain.models import (
    ClaimedFunction,
    GapStatus,
    ImplementationClaim,
    ParsedSpecification,
    Requirement,
    SkippedDocument,
    SpecFormat,
)
from specgap.specs.parsers.speckit_parser import SPEC_FILE_NAME, SpecKitParser

logger = get_logger(__name__)

GAP_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "https://specgap.dev/gap")

COMPLETE_SUPPRESSION_CONFIDENCE = 90

BASE_EFFORT_HOURS: dict[GapStatus, int] = {
    GapStatus.MISSING: 16,
    GapStatus.STUB: 12,
    GapStatus.PARTIAL: 8,
    GapStatus.COMPLETE: 2,
}
MANY_CRITERIA_FACTOR = 1.5  # more than 5 acceptance criteria
SOME_CRITERIA_FACTOR = 1.2  # more than 3
DEPENDENCY_FACTOR = 1.3

DEPENDENCY_PATTERN = re.compile(r"depends on ([A-Z]+[-.]?\d+(?:\.\d+)?)", re.IGNORECASE)
LOCATION_UNSAFE_PATTERN = re.compile(r"[^a-z0-9_]+")

IMPACT_TEMPLATES: dict[GapStatus, str] = {
    GapStatus.MISSING: "{title} is not implemented. This blocks {spec_title}.",
    GapStatus.STUB: "{title} is only a stub. Users will encounter non-functional code.",
    GapStatus.PARTIAL: "{title} is partially implemented. Some acceptance criteria are not met.",
    GapStatus.COMPLETE: "{title} appears complete but may need verification.",
}
RECOMMENDATION_TEMPLATES: dict[GapStatus, str] = {
    GapStatus.MISSING: "Implement {title} according to specification.",
    GapStatus.STUB: "Complete the stub implementation of {title}.",
    GapStatus.PARTIAL: "Finish implementing remaining acceptance criteria for {title}.",
    GapStatus.COMPLETE: "Verify and test {title} implementation.",
}


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def estimate_effort(requirement: Requirement, status: GapStatus) -> EffortEstimate:
    """Hours from status, scaled by acceptance-criteria count and dependencies."""
    hours: float = BASE_EFFORT_HOURS[status]

    criteria_count = len(requirement.acceptance_criteria)
    if criteria_count > 5:
        hours *= MANY_CRITERIA_FACTOR
    elif criteria_count > 3:
        hours *= SOME_CRITERIA_FACTOR

    if DEPENDENCY_PATTERN.search(requirement.description):
        hours *= DEPENDENCY_FACTOR

    rounded = round_half_up(hours)
    return EffortEstimate(
        hours=rounded,
        confidence="medium",
        method="complexity",
        optimistic=round_half_up(rounded * 0.7),
        pessimistic=round_half_up(rounded * 1.5),
    )


def extract_dependencies(requirement: Requirement) -> tuple[str, ...]:
    found = (match.upper() for match in DEPENDENCY_PATTERN.findall(requirement.description))
    return tuple(dict.fromkeys(found))


def gap_id(spec: ParsedSpecification, requirement: Requirement) -> str:
    """Same specification path and ids, same gap id."""
    return str(uuid.uuid5(GAP_ID_NAMESPACE, f"{spec.path}\n{spec.id}\n{requirement.id}"))


@dataclass
class AnalysisRun:
    """
    State scoped to one analysis invocation.

    Holds the per-run parse cache (inside parser) and directory listings
    (inside searcher), and records source files that failed to parse.
    """

    source_root: Path
    parser: CodeASTParser
    searcher: FileSearcher
    unparsed_sources: set[str] = field(default_factory=set)


class GapAnalyzer:
    """
    Orchestrates specification reading, evidence collection and scoring.

    Args:
        config: Analysis options (defaults when omitted)
        reader: Specification reader
        registry: AST providers used to parse source files
        scorer: Confidence scorer
    """

    def __init__(
        self,
        config: GapAnalyzerConfig | None = None,
        reader: UnifiedSpecReader | None = None,
        registry: ASTProviderRegistry | None = None,
        scorer: ConfidenceScorer | None = None,
    ):
        self.config = config or GapAnalyzerConfig()
        self.reader = reader or UnifiedSpecReader()
        self.registry = registry or default_registry()
        self.scorer = scorer or ConfidenceScorer()

    def new_run(self, source_root: str | Path) -> AnalysisRun:
        cache = ParsedFileCache() if self.config.cache_parsed_files else None
        return AnalysisRun(
            source_root=Path(source_root),
            parser=CodeASTParser(self.registry, cache),
            searcher=FileSearcher(extensions=self.config.source_extensions),
        )

    async def detect_format(self, project_root: str | Path) -> FormatDetectionResult:
        return await self.reader.detector.detect(project_root)

    async def analyze_project(
        self,
        project_root: str | Path,
        source_root: str | Path | None = None,
    ) -> GapAnalysisResult:
        """
        Detect, read and analyze every specification of a project.

        Args:
            project_root: Project directory holding the specification folders
            source_root: Code to check (defaults to project_root)

        Raises:
            GapDetectionError: A specs root or the source tree cannot be enumerated
        """
        project = Path(project_root)
        logger.info("gap_analysis_started", project=str(project), source_root=str(source_root or project))

        read = await self.reader.read(project, self.config.format_override, self.config.route)
        run = self.new_run(source_root or project)
        gaps = await self._analyze_specs(read.specs, run)

        return self._build_result(
            gaps,
            run,
            spec_format=read.format,
            detection=read.detection,
            spec_count=len(read.specs),
            skipped=read.skipped,
        )

    async def analyze_specs_directory(
        self,
        specs_dir: str | Path,
        source_root: str | Path,
    ) -> GapAnalysisResult:
        """
        Analyze every ``spec.md`` found (recursively) below a directory.

        Only the Spec Kit schema is read here.

        Raises:
            GapDetectionError: specs_dir cannot be enumerated
        """
        directory = Path(specs_dir)
        if not directory.is_dir():
            raise GapDetectionError("enumerate_specs", f"{directory} is not a directory")
        try:
            spec_files = sorted(directory.rglob(SPEC_FILE_NAME))
        except OSError as e:
            raise GapDetectionError("enumerate_specs", f"{directory}: {e}") from e

        parser = SpecKitParser()
        specs: list[ParsedSpecification] = []
        skipped: list[SkippedDocument] = []
        for spec_file in spec_files:
            try:
                specs.append(await parser.parse_spec(spec_file))
            except SpecParsingError as e:
                logger.warning("spec_skipped", path=e.path, reason=e.reason)
                skipped.append(SkippedDocument(path=e.path, reason=e.reason))

        logger.info("gap_analysis_started", specs_dir=str(directory), source_root=str(source_root), specs=len(specs))
        run = self.new_run(source_root)
        gaps = await self._analyze_specs(specs, run)

        return self._build_result(
            gaps,
            run,
            spec_format=SpecFormat.SPECKIT,
            detection=None,
            spec_count=len(specs),
            skipped=skipped,
        )

    async def analyze_specification(
        self,
        spec: ParsedSpecification,
        source_root: str | Path,
        run: AnalysisRun | None = None,
    ) -> list[Gap]:
        """Gaps of one specification, before the confidence threshold."""
        return await self._analyze_specs([spec], run or self.new_run(source_root))

    async def verify_requirement(
        self,
        requirement: Requirement,
        spec: ParsedSpecification,
        source_root: str | Path,
        run: AnalysisRun | None = None,
    ) -> Gap | None:
        """
        Verify one requirement against the source tree.

        Returns:
            The Gap, or None when the requirement is suppressed
        """
        return await self._verify(requirement, spec, run or self.new_run(source_root))

    def apply_confidence_threshold(self, gaps: list[Gap]) -> list[Gap]:
        """Keep gaps whose confidence is at least the threshold."""
        threshold = self.config.confidence_threshold
        return [gap for gap in gaps if gap.confidence >= threshold]

    async def _analyze_specs(self, specs: list[ParsedSpecification], run: AnalysisRun) -> list[Gap]:
        pairs = [(spec, requirement) for spec in specs for requirement in spec.requirements]
        executor = BoundedBatchExecutor(self.config.max_workers)
        results = await executor.execute_batch(
            pairs,
            lambda pair: self._verify(pair[1], pair[0], run),
            batch_name="requirements",
        )
        return [gap for gap in results if gap is not None]

    def _build_result(
        self,
        gaps: list[Gap],
        run: AnalysisRun,
        spec_format: SpecFormat,
        detection: FormatDetectionResult | None,
        spec_count: int,
        skipped: list[SkippedDocument],
    ) -> GapAnalysisResult:
        kept = self.apply_confidence_threshold(gaps)
        result = GapAnalysisResult(
            gaps=kept,
            format=spec_format,
            detection=detection,
            spec_count=spec_count,
            total_before_threshold=len(gaps),
            skipped_documents=list(skipped),
            unparsed_sources=sorted(run.unparsed_sources),
        )
        logger.info(
            "gap_analysis_completed",
            format=spec_format.value,
            specs=spec_count,
            gaps=len(kept),
            below_threshold=len(gaps) - len(kept),
            skipped_documents=len(result.skipped_documents),
            unparsed_sources=len(result.unparsed_sources),
        )
        if result.has_warnings:
            logger.warning("gap_analysis_incomplete_input", summary=result.warning_summary())
        return result

    async def _verify(self, requirement: Requirement, spec: ParsedSpecification, run: AnalysisRun) -> Gap | None:
        evidence: list[Evidence] = []
        claim = requirement.implementation

        if claim is not None:
            existing = await self._check_claimed_files(claim, run, evidence)
            await self._check_claimed_functions(claim, existing, run, evidence)
            status = self._claim_status(requirement, claim, evidence)
        else:
            await self._search_for_requirement(requirement, run, evidence)
            status = derive_status(evidence)

        if self.config.check_test_coverage and claim is not None:
            await self._check_test_coverage(claim, run, evidence)

        confidence = self.scorer.calculate_score(evidence)
        log = logger.info if self.config.verbose else logger.debug
        log(
            "requirement_verified",
            spec_id=spec.id,
            requirement_id=requirement.id,
            status=status.value,
            confidence=confidence,
            evidence=len(evidence),
        )

        if status is GapStatus.COMPLETE and confidence >= COMPLETE_SUPPRESSION_CONFIDENCE:
            return None
        if status is GapStatus.STUB and not self.config.include_stubs:
            return None
        if status is GapStatus.PARTIAL and not self.config.include_partial:
            return None

        title = requirement.title
        return Gap(
            id=gap_id(spec, requirement),
            spec_id=spec.id,
            requirement_id=requirement.id,
            description=title,
            status=status,
            confidence=confidence,
            evidence=tuple(evidence),
            expected_locations=self.expected_locations(requirement, spec),
            actual_locations=self.actual_locations(evidence),
            effort=estimate_effort(requirement, status),
            priority=requirement.priority or spec.priority,
            impact=IMPACT_TEMPLATES[status].format(title=title, spec_title=spec.title),
            recommendation=RECOMMENDATION_TEMPLATES[status].format(title=title),
            dependencies=extract_dependencies(requirement),
        )

    async def _check_claimed_files(
        self,
        claim: ImplementationClaim,
        run: AnalysisRun,
        evidence: list[Evidence],
    ) -> list[tuple[str, Path]]:
        existing: list[tuple[str, Path]] = []
        for claimed in claim.files:
            full_path = run.source_root / claimed
            if await run.searcher.file_exists(full_path):
                evidence.append(self.scorer.create_evidence(EvidenceKind.FILE_EXISTS, f"File exists: {claimed}", claimed))
                existing.append((claimed, full_path))
            else:
                evidence.append(
                    self.scorer.create_evidence(EvidenceKind.FILE_NOT_FOUND, f"File not found: {claimed}", claimed)
                )
        return existing

    async def _check_claimed_functions(
        self,
        claim: ImplementationClaim,
        existing: list[tuple[str, Path]],
        run: AnalysisRun,
        evidence: list[Evidence],
    ) -> None:
        for claimed in claim.functions:
            if not claim.files:
                evidence.append(
                    self.scorer.create_evidence(
                        EvidenceKind.FUNCTION_NOT_FOUND,
                        f"Function not found: {claimed.name} (no files claimed)",
                    )
                )
                continue
            if not existing:
                # file-not-found evidence already covers every claimed file
                continue
            evidence.extend(await self._locate_function(claimed, existing, run))

    async def _locate_function(
        self,
        claimed: ClaimedFunction,
        existing: list[tuple[str, Path]],
        run: AnalysisRun,
    ) -> list[Evidence]:
        """Search claimed files for a function, then a ``Class.method``, then a class."""
        for relative, full_path in existing:
            parsed = await run.parser.parse_file(full_path)
            if parsed.has_errors:
                run.unparsed_sources.add(str(full_path))
                continue

            function = parsed.find_function(claimed.name)
            if function is not None:
                line = function.location.line if function.location else None
                if function.is_stub:
                    return [
                        self.scorer.create_evidence(
                            EvidenceKind.STUB, f"Stub implementation: {claimed.name}", relative, line
                        )
                    ]
                found = [
                    self.scorer.create_evidence(
                        EvidenceKind.EXACT_MATCH, f"Function found: {claimed.name}", relative, line
                    )
                ]
                if claimed.has_signature:
                    params = ", ".join(claimed.expected_params)
                    if run.parser.verify_signature(function, claimed.expected_params):
                        found.append(
                            self.scorer.create_evidence(
                                EvidenceKind.SIGNATURE_VERIFIED,
                                f"Signature verified: {claimed.name}({params})",
                                relative,
                                line,
                            )
                        )
                    else:
                        logger.debug(
                            "signature_mismatch",
                            function=claimed.name,
                            expected=list(claimed.expected_params),
                            actual=function.param_names,
                        )
                return found

            declaration = parsed.find_class(claimed.name)
            if declaration is not None:
                line = declaration.location.line if declaration.location else None
                return [
                    self.scorer.create_evidence(
                        EvidenceKind.EXACT_MATCH, f"Class found: {claimed.name}", relative, line
                    )
                ]

        return [
            self.scorer.create_evidence(
                EvidenceKind.FUNCTION_NOT_FOUND,
                f"Function not found: {claimed.name}",
                existing[0][0],
            )
        ]

    def _claim_status(
        self,
        requirement: Requirement,
        claim: ImplementationClaim,
        evidence: list[Evidence],
    ) -> GapStatus:
        """
        Declared status, else derived from evidence.

        A declared ``complete`` contradicted by a missing claimed file is
        re-derived, so the requirement can never stay complete.
        """
        declared = claim.declared_status
        if declared is None:
            return derive_status(evidence)
        if declared is GapStatus.COMPLETE and any(e.kind is EvidenceKind.FILE_NOT_FOUND for e in evidence):
            derived = derive_status(evidence)
            logger.info(
                "declared_status_contradicted",
                requirement_id=requirement.qualified_id,
                declared=declared.value,
                derived=derived.value,
            )
            return derived
        return declared

    async def _search_for_requirement(
        self,
        requirement: Requirement,
        run: AnalysisRun,
        evidence: list[Evidence],
    ) -> None:
        for keyword in extract_keywords(f"{requirement.title} {requirement.description}"):
            matches = await run.searcher.search_by_name(run.source_root, keyword)
            if not matches:
                continue
            evidence.append(
                self.scorer.create_evidence(
                    EvidenceKind.NAME_SIMILARITY,
                    f"Name match for '{keyword}': {len(matches)} file(s)",
                    self._relative(matches[0], run.source_root),
                )
            )

    async def _check_test_coverage(
        self,
        claim: ImplementationClaim,
        run: AnalysisRun,
        evidence: list[Evidence],
    ) -> None:
        for claimed in claim.files:
            tests = await run.searcher.find_test_files(run.source_root / claimed, run.source_root)
            if tests:
                evidence.append(
                    self.scorer.create_evidence(
                        EvidenceKind.TEST_FILE_EXISTS,
                        f"Test file exists for {claimed}",
                        self._relative(tests[0], run.source_root),
                    )
                )
            else:
                evidence.append(
                    self.scorer.create_evidence(EvidenceKind.TEST_FILE_MISSING, f"No test file for {claimed}", claimed)
                )

    def expected_locations(self, requirement: Requirement, spec: ParsedSpecification) -> tuple[str, ...]:
        """Candidate paths derived from title keywords, kept even when nothing matched."""
        extension = self.config.source_extensions[0] if self.config.source_extensions else ".py"
        spec_dir = LOCATION_UNSAFE_PATTERN.sub("_", spec.id.lower()).strip("_") or "spec"
        locations: list[str] = []
        for keyword in extract_keywords(requirement.title):
            locations.append(f"src/{keyword}{extension}")
            locations.append(f"src/{spec_dir}/{keyword}{extension}")
        return tuple(locations)

    def actual_locations(self, evidence: list[Evidence]) -> tuple[str, ...]:
        """Locations of positive evidence, first occurrence order."""
        return tuple(dict.fromkeys(e.location for e in evidence if e.weight > 0 and e.location))

    def _relative(self, path: str | Path, root: Path) -> str:
        try:
            return Path(os.path.relpath(path, root)).as_posix()
        except ValueError:
            return str(path)
