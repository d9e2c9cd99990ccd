"""
Evidence-to-status precedence.

One ordered rule table; the first rule whose predicate holds decides the
status. Test evidence is excluded before the rules run.
"""

from __future__ import annotations

from typing import Callable, Iterable

from specgap.analysis.domain.models import TEST_EVIDENCE_KINDS, Evidence, EvidenceKind
from specgap.specs.domain.models import GapStatus

STRONG_POSITIVE_KINDS = frozenset(
    {EvidenceKind.FILE_EXISTS, EvidenceKind.EXACT_MATCH, EvidenceKind.SIGNATURE_VERIFIED}
)
NEGATIVE_KINDS = frozenset({EvidenceKind.FILE_NOT_FOUND, EvidenceKind.FUNCTION_NOT_FOUND})


def _has_stub(evidence: list[Evidence]) -> bool:
    return any(item.kind is EvidenceKind.STUB for item in evidence)


def _strong_and_clean(evidence: list[Evidence]) -> bool:
    kinds = {item.kind for item in evidence}
    return bool(kinds & STRONG_POSITIVE_KINDS) and not kinds & NEGATIVE_KINDS


def _any_positive(evidence: list[Evidence]) -> bool:
    return any(item.weight > 0 for item in evidence)


# stub > complete > partial; missing when nothing matches
STATUS_RULES: list[tuple[Callable[[list[Evidence]], bool], GapStatus]] = [
    (_has_stub, GapStatus.STUB),
    (_strong_and_clean, GapStatus.COMPLETE),
    (_any_positive, GapStatus.PARTIAL),
]


def derive_status(evidence: Iterable[Evidence]) -> GapStatus:
    relevant = [item for item in evidence if item.kind not in TEST_EVIDENCE_KINDS]
    for predicate, status in STATUS_RULES:
        if predicate(relevant):
            return status
    return GapStatus.MISSING
