"""Tests for heuristic field extraction."""

import re

import pytest

from docverify.extraction.rule_extractor import (
    FIELD_RULES,
    FieldRule,
    KeywordMatcher,
    RegexMatcher,
    RuleExtractor,
    confidence_level,
    detect_institution,
)
from docverify.types import ConfidenceLevel, DocumentType


@pytest.fixture
def extractor() -> RuleExtractor:
    return RuleExtractor()


class TestMatchers:
    """Tests for the individual matcher strategies."""

    def test_regex_returns_capture_group(self) -> None:
        matcher = RegexMatcher(r"Roll\s+No[\s:.]+([A-Z0-9\-]+)", re.IGNORECASE)
        assert matcher.match("roll no. cs-2041 issued") == "cs-2041"

    def test_regex_without_group_returns_match(self) -> None:
        assert RegexMatcher(r"20\d{2}").match("Session 2024-25") == "2024"

    def test_regex_no_match(self) -> None:
        assert RegexMatcher(r"20\d{2}").match("Session 1999") is None

    def test_keyword_matcher_uses_list_order(self) -> None:
        matcher = KeywordMatcher(("B.Tech", "BA"))
        assert matcher.match("BA and B.Tech") == "B.Tech"

    def test_keyword_matcher_is_case_sensitive(self) -> None:
        assert KeywordMatcher(("MBA",)).match("mba programme") is None

    def test_field_rule_first_match_wins(self) -> None:
        rule = FieldRule("code", (RegexMatcher(r"A(\d)"), RegexMatcher(r"B(\d)")))
        assert rule.extract("B2 then A1") == "1"
        assert rule.extract("only B2") == "2"
        assert rule.extract("nothing") is None


class TestStudentId:
    """Tests for student ID card fields."""

    def test_roll_number(self, extractor: RuleExtractor) -> None:
        fields = extractor.extract_fields("Name: Asha Verma\nRoll No: ABC123", DocumentType.STUDENT_ID)
        assert fields == {"studentId": "ABC123"}

    def test_student_id_label(self, extractor: RuleExtractor) -> None:
        fields = extractor.extract_fields("Student ID: 21-BCS-044", DocumentType.STUDENT_ID)
        assert fields["studentId"] == "21-BCS-044"

    def test_enrollment(self, extractor: RuleExtractor) -> None:
        fields = extractor.extract_fields("Enrollment: EN2023778", DocumentType.STUDENT_ID)
        assert fields["studentId"] == "EN2023778"

    def test_no_identifier(self, extractor: RuleExtractor) -> None:
        assert extractor.extract_fields("Library card", DocumentType.STUDENT_ID) == {}


class TestAdmissionLetter:
    """Tests for admission letter fields."""

    def test_year_and_program(self, extractor: RuleExtractor) -> None:
        fields = extractor.extract_fields(
            "Admitted for B.Tech program in 2023", DocumentType.ADMISSION_LETTER
        )
        assert fields == {"admissionYear": "2023", "program": "B.Tech"}

    def test_first_year_wins(self, extractor: RuleExtractor) -> None:
        fields = extractor.extract_fields(
            "Session 2024-2025, issued 2024", DocumentType.ADMISSION_LETTER
        )
        assert fields["admissionYear"] == "2024"

    def test_program_substring_match(self, extractor: RuleExtractor) -> None:
        # Substring matching: "BA" is listed before "MBA".
        fields = extractor.extract_fields("Offer of MBA seat", DocumentType.ADMISSION_LETTER)
        assert fields["program"] == "BA"


class TestFeeReceipt:
    """Tests for fee receipt fields."""

    def test_total_strips_commas(self, extractor: RuleExtractor) -> None:
        fields = extractor.extract_fields("Total: 12,500", DocumentType.FEE_RECEIPT)
        assert fields["amount"] == "12500"

    def test_rupee_symbol_preferred(self, extractor: RuleExtractor) -> None:
        fields = extractor.extract_fields("Total: 99\nPaid ₹ 1,20,000", DocumentType.FEE_RECEIPT)
        assert fields["amount"] == "120000"

    def test_rs_prefix(self, extractor: RuleExtractor) -> None:
        fields = extractor.extract_fields("Paid Rs. 45,000 only", DocumentType.FEE_RECEIPT)
        assert fields["amount"] == "45000"

    def test_receipt_number(self, extractor: RuleExtractor) -> None:
        fields = extractor.extract_fields(
            "Receipt #: FR-2023-0091\nAmount: 5,000", DocumentType.FEE_RECEIPT
        )
        assert fields == {"amount": "5000", "receiptNumber": "FR-2023-0091"}

    def test_transaction_reference(self, extractor: RuleExtractor) -> None:
        fields = extractor.extract_fields("Transaction: TXN88812", DocumentType.FEE_RECEIPT)
        assert fields["receiptNumber"] == "TXN88812"


class TestInstitution:
    """Tests for institution detection."""

    def test_first_matching_line(self) -> None:
        text = "Government of India\nIndian Institute of Technology Delhi\nSt. Xavier's College"
        assert detect_institution(text) == "Indian Institute of Technology Delhi"

    def test_abbreviation_case_insensitive(self) -> None:
        assert detect_institution("  Welcome to iit bombay  ") == "Welcome to iit bombay"

    def test_hindi_keyword(self) -> None:
        assert detect_institution("दिल्ली विश्वविद्यालय") == "दिल्ली विश्वविद्यालय"

    def test_long_line_skipped(self) -> None:
        long_line = "University " + "x" * 200
        text = f"{long_line}\nSunrise Academy"
        assert detect_institution(text) == "Sunrise Academy"

    def test_exactly_150_chars_accepted(self) -> None:
        line = ("College " + "y" * 150)[:150]
        assert detect_institution(line) == line

    def test_none_found(self) -> None:
        assert detect_institution("Fee paid in full") is None


class TestAnalyze:
    """Tests for RuleExtractor.analyze."""

    def test_confidence_levels(self) -> None:
        assert confidence_level(101) == ConfidenceLevel.HIGH
        assert confidence_level(100) == ConfidenceLevel.MEDIUM
        assert confidence_level(31) == ConfidenceLevel.MEDIUM
        assert confidence_level(30) == ConfidenceLevel.LOW

    def test_analysis_statistics(self, extractor: RuleExtractor) -> None:
        text = "Delhi Public School\nRoll No: 7781\n" + "word " * 40
        analysis = extractor.analyze(text, DocumentType.STUDENT_ID)

        assert analysis.text_length == len(text)
        assert analysis.word_count == 46
        assert analysis.has_content is True
        assert analysis.confidence_level == ConfidenceLevel.MEDIUM
        assert analysis.detected_institution == "Delhi Public School"
        assert analysis.detected_fields == {"studentId": "7781"}

    def test_short_text_has_no_content(self, extractor: RuleExtractor) -> None:
        analysis = extractor.analyze("   tiny   ", DocumentType.FEE_RECEIPT)
        assert analysis.has_content is False
        assert analysis.confidence_level == ConfidenceLevel.LOW

    def test_accepts_string_document_type(self, extractor: RuleExtractor) -> None:
        fields = extractor.extract_fields("Total: 10", "fee_receipt")
        assert fields == {"amount": "10"}

    def test_deterministic(self, extractor: RuleExtractor) -> None:
        text = "ABC University\nReceipt: R-1\nTotal: 1,000"
        runs = [extractor.analyze(text, DocumentType.FEE_RECEIPT) for _ in range(3)]
        assert all(r.detected_fields == runs[0].detected_fields for r in runs)
        assert all(r.detected_institution == runs[0].detected_institution for r in runs)

    def test_every_document_type_has_rules(self) -> None:
        assert set(FIELD_RULES) == set(DocumentType)
