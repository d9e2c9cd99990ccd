"""Tests for ConfidenceScorer and the evidence-to-status rule table."""

import itertools

import pytest

from specgap.analysis.application.confidence_scorer import BASELINE_CONFIDENCE, ConfidenceScorer
from specgap.analysis.application.status_rules import STATUS_RULES, derive_status
from specgap.analysis.domain.models import EVIDENCE_WEIGHTS, EvidenceKind
from specgap.specs.domain.models import GapStatus


@pytest.fixture
def scorer():
    return ConfidenceScorer()


def evidence(scorer, *kinds):
    return [scorer.create_evidence(kind, kind.value) for kind in kinds]


class TestEvidenceWeights:
    def test_weights(self):
        assert EVIDENCE_WEIGHTS == {
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

    def test_create_evidence_uses_fixed_weight(self, scorer):
        item = scorer.create_evidence(EvidenceKind.STUB, "Stub implementation: login", "src/auth.py", 3)

        assert item.weight == -35
        assert item.to_dict() == {
            "type": "stub",
            "description": "Stub implementation: login",
            "weight": -35,
            "location": "src/auth.py",
            "line": 3,
        }


class TestCalculateScore:
    def test_no_evidence_is_baseline(self, scorer):
        assert scorer.calculate_score([]) == BASELINE_CONFIDENCE == 50

    def test_stub_scenario(self, scorer):
        items = evidence(scorer, EvidenceKind.FILE_EXISTS, EvidenceKind.STUB)

        assert scorer.calculate_score(items) == 45

    def test_clamped_high(self, scorer):
        items = evidence(scorer, EvidenceKind.FILE_EXISTS, EvidenceKind.EXACT_MATCH, EvidenceKind.SIGNATURE_VERIFIED)

        assert scorer.calculate_score(items) == 100

    def test_clamped_low(self, scorer):
        items = evidence(scorer, EvidenceKind.FILE_NOT_FOUND, EvidenceKind.FUNCTION_NOT_FOUND)

        assert scorer.calculate_score(items) == 0

    def test_order_independent(self, scorer):
        items = evidence(
            scorer,
            EvidenceKind.FILE_EXISTS,
            EvidenceKind.STUB,
            EvidenceKind.TEST_FILE_MISSING,
            EvidenceKind.NAME_SIMILARITY,
        )
        scores = {scorer.calculate_score(list(order)) for order in itertools.permutations(items)}

        assert scores == {35}

    def test_positive_evidence_never_lowers_score(self, scorer):
        base = evidence(scorer, EvidenceKind.FILE_NOT_FOUND)
        before = scorer.calculate_score(base)

        for kind in (k for k, w in EVIDENCE_WEIGHTS.items() if w > 0):
            assert scorer.calculate_score(base + evidence(scorer, kind)) >= before


class TestLevelsAndExplanations:
    @pytest.mark.parametrize(
        "score, level",
        [(100, "very-high"), (90, "very-high"), (89, "high"), (70, "high"), (50, "medium"), (30, "low"), (29, "very-low")],
    )
    def test_levels(self, scorer, score, level):
        assert scorer.level(score) == level

    def test_explain(self, scorer):
        items = evidence(scorer, EvidenceKind.EXACT_MATCH, EvidenceKind.FILE_NOT_FOUND)

        breakdown = scorer.explain(items)

        assert breakdown.evidence_total == 0
        assert breakdown.final_score == 50
        assert "Strong evidence found: exact_match" in breakdown.reasoning
        assert "Issues detected: file_not_found" in breakdown.reasoning

    def test_explain_without_evidence(self, scorer):
        assert "No evidence collected" in scorer.explain([]).reasoning

    def test_aggregate_and_completeness(self, scorer):
        assert scorer.aggregate([]) == 0
        assert scorer.aggregate([40, 61]) == 50
        assert scorer.completeness(1, 3) == 33
        assert scorer.completeness(0, 0) == 0


class TestStatusRules:
    def test_rule_order(self):
        assert [status for _, status in STATUS_RULES] == [GapStatus.STUB, GapStatus.COMPLETE, GapStatus.PARTIAL]

    def test_no_evidence_is_missing(self, scorer):
        assert derive_status([]) is GapStatus.MISSING

    def test_stub_wins_over_strong_evidence(self, scorer):
        items = evidence(scorer, EvidenceKind.FILE_EXISTS, EvidenceKind.EXACT_MATCH, EvidenceKind.STUB)

        assert derive_status(items) is GapStatus.STUB

    def test_strong_without_negative_is_complete(self, scorer):
        assert derive_status(evidence(scorer, EvidenceKind.FILE_EXISTS)) is GapStatus.COMPLETE

    def test_strong_with_negative_is_partial(self, scorer):
        items = evidence(scorer, EvidenceKind.FILE_EXISTS, EvidenceKind.FUNCTION_NOT_FOUND)

        assert derive_status(items) is GapStatus.PARTIAL

    def test_name_similarity_alone_is_partial(self, scorer):
        assert derive_status(evidence(scorer, EvidenceKind.NAME_SIMILARITY)) is GapStatus.PARTIAL

    def test_only_negative_is_missing(self, scorer):
        assert derive_status(evidence(scorer, EvidenceKind.FILE_NOT_FOUND)) is GapStatus.MISSING

    def test_test_evidence_does_not_affect_status(self, scorer):
        assert derive_status(evidence(scorer, EvidenceKind.TEST_FILE_EXISTS)) is GapStatus.MISSING
        items = evidence(scorer, EvidenceKind.FILE_EXISTS, EvidenceKind.TEST_FILE_MISSING)
        assert derive_status(items) is GapStatus.COMPLETE
