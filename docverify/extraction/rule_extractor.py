"""Rule-based field extraction for proof documents.

Each document type owns an ordered list of field rules. A rule tries its
matchers in priority order and keeps the first value found, so the
extraction grammar can be extended by adding matchers without touching
the control flow.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Protocol

from docverify.types import AnalysisResult, ConfidenceLevel, DocumentType
from docverify.utils.logger import get_logger

logger = get_logger(__name__)

MAX_INSTITUTION_LENGTH = 150

# English and Hindi institution nouns, then well-known abbreviations.
INSTITUTION_KEYWORDS: tuple[str, ...] = (
    "university",
    "college",
    "institute",
    "school",
    "academy",
    "विश्वविद्यालय",
    "महाविद्यालय",
    "संस्थान",
    "IIT",
    "NIT",
    "IIIT",
    "IIM",
    "AIIMS",
)

PROGRAM_KEYWORDS: tuple[str, ...] = (
    "B.Tech",
    "M.Tech",
    "B.Sc",
    "M.Sc",
    "BA",
    "MA",
    "BBA",
    "MBA",
    "B.E",
    "M.E",
)

_TOKEN = r"([A-Z0-9\-]+)"


class FieldMatcher(Protocol):
    """Strategy that finds one field value in free text."""

    def match(self, text: str) -> str | None: ...


@dataclass(frozen=True)
class RegexMatcher:
    """Returns the first capture group (or whole match) of a pattern."""

    pattern: str
    flags: int = 0
    transform: Callable[[str], str] = str.strip

    def match(self, text: str) -> str | None:
        found = re.search(self.pattern, text, self.flags)
        if not found:
            return None
        value = found.group(1) if found.groups() else found.group(0)
        return self.transform(value)


@dataclass(frozen=True)
class KeywordMatcher:
    """Returns the first keyword, in list order, contained in the text."""

    keywords: tuple[str, ...]

    def match(self, text: str) -> str | None:
        for keyword in self.keywords:
            if keyword in text:
                return keyword
        return None


@dataclass(frozen=True)
class FieldRule:
    """A named field and the matchers tried for it, first hit wins."""

    name: str
    matchers: tuple[FieldMatcher, ...] = field(default_factory=tuple)

    def extract(self, text: str) -> str | None:
        for matcher in self.matchers:
            value = matcher.match(text)
            if value:
                return value
        return None


def _strip_commas(value: str) -> str:
    return value.replace(",", "")


FIELD_RULES: dict[DocumentType, tuple[FieldRule, ...]] = {
    DocumentType.STUDENT_ID: (
        FieldRule(
            "studentId",
            (
                RegexMatcher(r"ID[\s:]+" + _TOKEN, re.IGNORECASE),
                RegexMatcher(r"Student\s+ID[\s:]+" + _TOKEN, re.IGNORECASE),
                RegexMatcher(r"Roll\s+No[\s:.]+" + _TOKEN, re.IGNORECASE),
                RegexMatcher(r"Enrollment[\s:]+" + _TOKEN, re.IGNORECASE),
            ),
        ),
    ),
    DocumentType.ADMISSION_LETTER: (
        FieldRule("admissionYear", (RegexMatcher(r"20\d{2}"),)),
        FieldRule("program", (KeywordMatcher(PROGRAM_KEYWORDS),)),
    ),
    DocumentType.FEE_RECEIPT: (
        FieldRule(
            "amount",
            (
                RegexMatcher(r"₹\s*([0-9,]+)", transform=_strip_commas),
                RegexMatcher(r"Rs\.?\s*([0-9,]+)", re.IGNORECASE, _strip_commas),
                RegexMatcher(r"Amount[\s:]+([0-9,]+)", re.IGNORECASE, _strip_commas),
                RegexMatcher(r"Total[\s:]+([0-9,]+)", re.IGNORECASE, _strip_commas),
            ),
        ),
        FieldRule(
            "receiptNumber",
            (
                RegexMatcher(r"Receipt[\s#:]+" + _TOKEN, re.IGNORECASE),
                RegexMatcher(r"Transaction[\s#:]+" + _TOKEN, re.IGNORECASE),
                RegexMatcher(r"Ref[\s#:]+" + _TOKEN, re.IGNORECASE),
            ),
        ),
    ),
}


def detect_institution(text: str) -> str | None:
    """Return the first line naming an educational institution.

    A line qualifies when it contains any institution keyword
    (case-insensitive substring) and is at most 150 characters once
    trimmed.
    """
    keywords = [k.lower() for k in INSTITUTION_KEYWORDS]
    for line in text.split("\n"):
        lower_line = line.lower()
        if any(keyword in lower_line for keyword in keywords):
            clean_line = line.strip()
            if len(clean_line) <= MAX_INSTITUTION_LENGTH:
                return clean_line
    return None


def confidence_level(word_count: int) -> ConfidenceLevel:
    if word_count > 100:
        return ConfidenceLevel.HIGH
    if word_count > 30:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


class RuleExtractor:
    """Regex and keyword extractor for student proof documents.

    Args:
        rules: Field rules per document type. Defaults to ``FIELD_RULES``.
    """

    def __init__(
        self, rules: dict[DocumentType, tuple[FieldRule, ...]] | None = None
    ) -> None:
        self.rules = rules if rules is not None else FIELD_RULES

    def extract_fields(self, text: str, document_type: DocumentType) -> dict[str, str]:
        """Run every field rule registered for the document type.

        Args:
            text: Extracted document text.
            document_type: Declared type of the document.

        Returns:
            Mapping of field name to value for the fields that matched.
        """
        fields: dict[str, str] = {}
        for rule in self.rules.get(DocumentType(document_type), ()):
            value = rule.extract(text)
            if value:
                fields[rule.name] = value
        return fields

    def analyze(self, text: str, document_type: DocumentType) -> AnalysisResult:
        """Compute content statistics and heuristic fields for a document.

        Args:
            text: Extracted document text.
            document_type: Declared type of the document.

        Returns:
            AnalysisResult with the detected institution and fields.
        """
        word_count = len(text.split())
        fields = self.extract_fields(text, document_type)
        institution = detect_institution(text)

        logger.info(
            "Rule extraction found %d field(s) for %s, institution=%s",
            len(fields),
            document_type,
            "yes" if institution else "no",
        )
        return AnalysisResult(
            text_length=len(text),
            word_count=word_count,
            has_content=len(text.strip()) > 50,
            confidence_level=confidence_level(word_count),
            detected_institution=institution,
            detected_fields=fields,
        )
