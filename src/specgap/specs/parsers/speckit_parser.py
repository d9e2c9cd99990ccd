"""
GitHub Spec Kit specification parser.

Parses ``<specs root>/<feature>/spec.md`` documents:

    # F008: Roadmap Generation

    **Status:** In Progress
    **Priority:** P1

    ### FR1: Generate roadmap
    **Priority:** P0

    Build a roadmap from the gap list.

    #### Acceptance Criteria
    - ✅ Roadmap is written

Missing optional structure produces empty collections; only an unreadable
document is an error.
"""

from __future__ import annotations

import re
from pathlib import Path

from specgap.shared.domain.exceptions import GapDetectionError, SpecParsingError
from specgap.shared.infrastructure.logging import get_logger
from specgap.shared.utils.file_io import read_text_async
from specgap.specs.application.parser_interface import ISpecParser
from specgap.specs.domain.models import (
    AcceptanceCriterion,
    ParsedSpecification,
    Requirement,
    SkippedDocument,
    SpecFormat,
    SpecPhase,
    SpecSource,
)
from specgap.specs.parsers import markdown

logger = get_logger(__name__)

SPEC_FILE_NAME = "spec.md"

ID_HEADING_PATTERN = re.compile(r"^#\s+([A-Z]+\d+)[:\s]", re.MULTILINE)
ID_DIRECTORY_PATTERN = re.compile(r"^([A-Z]+\d+)-")
TITLE_PREFIX_PATTERN = re.compile(r"^[A-Z]+\d+:\s*")
PHASE_PATTERN = re.compile(r"^Phase\s+(\d+):\s*(.+?)(?:\s*\(([^)]+)\))?$", re.IGNORECASE)
SUCCESS_HEADING_PATTERN = re.compile(r"^Success\s+(?:Metrics|Criteria)$", re.IGNORECASE)
ACCEPTANCE_MARKER = "Acceptance Criteria"


def requirement_heading_pattern(prefix: str) -> re.Pattern[str]:
    """``FR1: Title`` / ``NFR-2 Title`` heading text for the given prefix."""
    return re.compile(rf"^({prefix}-?\d+):?\s+(.+)$", re.IGNORECASE)


class SpecKitParser(ISpecParser):
    """Parser for GitHub Spec Kit ``spec.md`` documents."""

    @property
    def format(self) -> SpecFormat:
        return SpecFormat.SPECKIT

    async def parse_spec(self, path: str | Path) -> ParsedSpecification:
        spec_path = Path(path)
        try:
            content = await read_text_async(spec_path)
        except (OSError, UnicodeDecodeError) as e:
            raise SpecParsingError(str(spec_path), str(e)) from e

        return self.parse_content(content, spec_path)

    def parse_content(self, content: str, spec_path: Path) -> ParsedSpecification:
        """Parse already-loaded document text."""
        spec_id = self.extract_id(content, spec_path)
        sections = markdown.split_sections(content)

        spec = ParsedSpecification(
            id=spec_id,
            title=self.extract_title(content),
            path=str(spec_path),
            status=markdown.extract_metadata(content, "Status"),
            priority=markdown.parse_priority(markdown.extract_metadata(content, "Priority")),
            effort=markdown.extract_metadata(content, "Effort"),
            functional_requirements=tuple(self.extract_requirements(sections, "FR", spec_id)),
            non_functional_requirements=tuple(self.extract_requirements(sections, "NFR", spec_id)),
            acceptance_criteria=tuple(self.extract_acceptance_criteria(content)),
            success_criteria=tuple(self.extract_success_criteria(sections)),
            phases=tuple(self.extract_phases(sections)),
            source=SpecSource.SPECKIT,
        )

        logger.debug(
            "speckit_spec_parsed",
            spec_id=spec.id,
            path=spec.path,
            functional=len(spec.functional_requirements),
            non_functional=len(spec.non_functional_requirements),
        )
        return spec

    async def parse_from_directory(
        self,
        directory: str | Path,
        skipped: list[SkippedDocument] | None = None,
    ) -> list[ParsedSpecification]:
        specs_dir = Path(directory)
        try:
            children = sorted(child for child in specs_dir.iterdir() if child.is_dir())
        except OSError as e:
            raise GapDetectionError("enumerate_specs", f"{specs_dir}: {e}") from e

        specs: list[ParsedSpecification] = []
        for child in children:
            spec_file = child / SPEC_FILE_NAME
            if not spec_file.is_file():
                continue
            try:
                specs.append(await self.parse_spec(spec_file))
            except SpecParsingError as e:
                logger.warning("spec_skipped", path=e.path, reason=e.reason)
                if skipped is not None:
                    skipped.append(SkippedDocument(path=e.path, reason=e.reason))

        logger.info("speckit_specs_parsed", directory=str(specs_dir), count=len(specs))
        return specs

    def extract_id(self, content: str, spec_path: Path) -> str:
        """ID from ``# F008: Title``, else from the feature directory name."""
        match = ID_HEADING_PATTERN.search(content)
        if match:
            return match.group(1)

        directory_name = spec_path.parent.name
        directory_match = ID_DIRECTORY_PATTERN.match(directory_name)
        if directory_match:
            return directory_match.group(1)
        return directory_name

    def extract_title(self, content: str) -> str:
        heading = markdown.first_heading(content, level=1)
        if not heading:
            return "Unknown"
        return TITLE_PREFIX_PATTERN.sub("", heading).strip() or "Unknown"

    def extract_requirements(
        self,
        sections: list[markdown.Section],
        prefix: str,
        spec_id: str,
    ) -> list[Requirement]:
        pattern = requirement_heading_pattern(prefix)
        requirements: list[Requirement] = []
        seen: set[str] = set()

        for section in sections:
            if not 2 <= section.level <= 4:
                continue
            match = pattern.match(section.title)
            if not match:
                continue

            requirement_id = match.group(1).upper()
            if requirement_id in seen:
                logger.warning("duplicate_requirement_id", spec_id=spec_id, requirement_id=requirement_id)
                continue
            seen.add(requirement_id)

            priority_value = markdown.extract_metadata(section.text, "Priority")
            criteria_lines = markdown.lines_in_labelled_section(section.lines, ACCEPTANCE_MARKER)
            requirements.append(
                Requirement(
                    id=requirement_id,
                    spec_id=spec_id,
                    title=match.group(2).strip(),
                    priority=markdown.parse_priority(priority_value, default=None) if priority_value else None,
                    description=self.extract_description(section.lines),
                    acceptance_criteria=tuple(markdown.criteria_from_lines(criteria_lines)),
                    implementation=markdown.extract_claim(section.lines),
                )
            )
        return requirements

    def extract_description(self, lines: list[str]) -> str:
        """Free text of a requirement section, up to its first sub-heading."""
        description: list[str] = []
        for line in lines:
            if markdown.parse_heading(line) or markdown.is_section_label(line, ACCEPTANCE_MARKER):
                break
            if markdown.is_metadata_line(line):
                continue
            description.append(line.rstrip())
        return "\n".join(description).strip()

    def extract_acceptance_criteria(self, content: str) -> list[AcceptanceCriterion]:
        """
        Spec-level criteria carrying a status marker or a bold number.

        Collection starts at an "Acceptance Criteria" heading or bold label
        and stops at the next level-2 heading.
        """
        criteria: list[AcceptanceCriterion] = []
        inside = False
        for line in content.splitlines():
            heading = markdown.parse_heading(line)
            if markdown.is_section_label(line, ACCEPTANCE_MARKER):
                inside = True
                continue
            if heading and heading[0] <= 2:
                inside = False
                continue
            if not inside:
                continue

            marked = markdown.parse_marked_bullet(line)
            if marked:
                criteria.append(AcceptanceCriterion(criterion=marked[1], status=marked[0]))
                continue
            numbered = markdown.parse_numbered_bold(line)
            if numbered:
                criteria.append(AcceptanceCriterion(criterion=numbered))
        return criteria

    def extract_success_criteria(self, sections: list[markdown.Section]) -> list[str]:
        criteria: list[str] = []
        for section in sections:
            if SUCCESS_HEADING_PATTERN.match(section.title):
                criteria.extend(markdown.success_criteria_from_lines(section.lines))
        return criteria

    def extract_phases(self, sections: list[markdown.Section]) -> list[SpecPhase]:
        phases: list[SpecPhase] = []
        for section in sections:
            match = PHASE_PATTERN.match(section.title)
            if not match:
                continue
            tasks = markdown.extract_tasks(section.lines)
            phases.append(
                SpecPhase(
                    number=int(match.group(1)),
                    name=match.group(2).strip(),
                    effort=(match.group(3) or "").strip(),
                    status=markdown.phase_status(tasks),
                    tasks=tuple(tasks),
                )
            )
        return phases


