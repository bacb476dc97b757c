"""
Canonical Mapper for the Product Fact Resolver.
Maps any raw table onto a caller-requested list of canonical fields.

Header classification is driven by a declarative rule table:
canonical field -> ordered match rules. Rule kinds are evaluated in a
fixed priority (exact, then substring, then content pattern) across all
fields, so a header that exactly names one field is never captured by
another field's synonym.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from product_resolver.config import config
from product_resolver.models.table import MappingResult, RawTable
from product_resolver.utils.logger import LayerLogger


class RuleKind(str, Enum):
    """How a rule is matched against a normalized header."""
    EXACT = "exact"
    SUBSTRING = "substring"
    CONTENT = "content"


RULE_PRIORITY = (RuleKind.EXACT, RuleKind.SUBSTRING, RuleKind.CONTENT)

# Rows inspected when falling back to column content
CONTENT_SAMPLE_ROWS = 20


@dataclass(frozen=True)
class MatchRule:
    """One way a header (or its column) can be recognized as a field."""
    kind: RuleKind
    value: str
    _pattern: Optional[re.Pattern] = None

    @classmethod
    def exact(cls, name: str) -> "MatchRule":
        return cls(RuleKind.EXACT, name.lower())

    @classmethod
    def substring(cls, synonym: str) -> "MatchRule":
        return cls(RuleKind.SUBSTRING, synonym.lower())

    @classmethod
    def content(cls, pattern: str) -> "MatchRule":
        return cls(RuleKind.CONTENT, pattern, re.compile(pattern))

    def matches(self, text: str) -> bool:
        if self.kind == RuleKind.EXACT:
            return text == self.value
        if self.kind == RuleKind.SUBSTRING:
            return self.value in text
        return bool(self._pattern.search(text))


CURRENCY_GLYPHS = r"[$₹€£¥]"

DEFAULT_SYNONYMS: Dict[str, List[str]] = {
    "sku": ["sku", "product code", "style", "item id", "asin", "upc"],
    "price": ["price", "mrp", "offer price", "sale price", "amount"],
    "color": ["color", "colour", "shade"],
    "size": ["size", "sizes", "dimension"],
}

DEFAULT_CONTENT_PATTERNS: Dict[str, List[str]] = {
    "price": [CURRENCY_GLYPHS],
}


def build_rule_table(
    synonyms: Optional[Dict[str, List[str]]] = None,
    content_patterns: Optional[Dict[str, List[str]]] = None,
) -> Dict[str, List[MatchRule]]:
    """
    Build the field -> rules table.

    Each field gets an exact rule on its own name, a substring rule per
    synonym and any content patterns. Synonyms from EXTRA_FIELD_SYNONYMS
    are appended after the defaults.
    """
    if synonyms is None:
        synonyms = {field: list(values) for field, values in DEFAULT_SYNONYMS.items()}
        for field, values in config.get_extra_synonyms().items():
            synonyms.setdefault(field, [])
            synonyms[field].extend(v for v in values if v not in synonyms[field])
    if content_patterns is None:
        content_patterns = DEFAULT_CONTENT_PATTERNS

    table: Dict[str, List[MatchRule]] = {}
    for field, values in synonyms.items():
        rules = [MatchRule.exact(field)]
        rules.extend(MatchRule.substring(v) for v in values)
        rules.extend(MatchRule.content(p) for p in content_patterns.get(field, []))
        table[field.lower()] = rules
    return table


def normalize_header(header: Any) -> str:
    return str(header or "").strip().lower()


class CanonicalMapper:
    """
    Canonical Mapper - classifies raw headers and projects rows.

    Never raises: unrecognized schemas produce empty columns and a
    confidence of 0.
    """

    def __init__(self, rules: Optional[Dict[str, List[MatchRule]]] = None):
        self.rules = rules if rules is not None else build_rule_table()
        self.logger = LayerLogger("canonical_mapper")

    def classify_header(self, header: Any, fields: Optional[Sequence[str]] = None) -> Optional[str]:
        """
        Classify a header text into a canonical field, or None.

        ``fields`` adds ad-hoc field names that match by exact name only.
        """
        text = normalize_header(header)
        if not text:
            return None
        rules = self._rules_for(fields)
        for kind in RULE_PRIORITY:
            for field, field_rules in rules.items():
                if any(rule.kind == kind and rule.matches(text) for rule in field_rules):
                    return field
        return None

    def classify_column(self, values: Sequence[Any], fields: Optional[Sequence[str]] = None) -> Optional[str]:
        """
        Content fallback: a field whose content rule matches every
        sampled non-empty value of the column.
        """
        sample = [str(v).strip() for v in values[:CONTENT_SAMPLE_ROWS] if v is not None and str(v).strip()]
        if not sample:
            return None
        for field, field_rules in self._rules_for(fields).items():
            for rule in field_rules:
                if rule.kind == RuleKind.CONTENT and all(rule.matches(v) for v in sample):
                    return field
        return None

    def map_to_canonical(self, raw_table: Any, requested_fields: Optional[Sequence[str]] = None) -> MappingResult:
        """
        Project a raw table onto the requested canonical fields.

        Args:
            raw_table: RawTable or a {"headers": [...], "rows": [...]} mapping
            requested_fields: Ordered canonical field names (defaults to the
                four standard fields)

        Returns:
            MappingResult with one column per requested field and
            confidence = matched fields / requested fields
        """
        requested = self._requested(requested_fields)
        table = self._coerce(raw_table)

        header_fields = self._classify_all(table, requested)
        column_index = self._column_index(header_fields, requested)

        rows = [
            [row[i] if i >= 0 else "" for i in column_index]
            for row in table.rows
        ]

        matched = [f for f, i in zip(requested, column_index) if i >= 0]
        confidence = len(matched) / len(requested) if requested else 0.0

        self.logger.log_mapping(
            requested=requested,
            matched=matched,
            unmatched=[f for f in requested if f not in matched],
            confidence=confidence,
            raw_headers=table.headers,
            rows=len(rows),
        )
        return MappingResult(headers=requested, table=rows, confidence=confidence)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _rules_for(self, fields: Optional[Sequence[str]]) -> Dict[str, List[MatchRule]]:
        if not fields:
            return self.rules
        rules = dict(self.rules)
        for field in fields:
            key = normalize_header(field)
            if key and key not in rules:
                rules[key] = [MatchRule.exact(key)]
        return rules

    def _classify_all(self, table: RawTable, requested: Sequence[str]) -> List[Optional[str]]:
        header_fields = [self.classify_header(h, requested) for h in table.headers]
        for index, field in enumerate(header_fields):
            if field is None:
                column = [row[index] for row in table.rows]
                header_fields[index] = self.classify_column(column, requested)
        return header_fields

    def _column_index(self, header_fields: List[Optional[str]], requested: Sequence[str]) -> List[int]:
        """First raw column classified as each requested field, or -1."""
        indexes = []
        for field in requested:
            key = normalize_header(field)
            indexes.append(next((i for i, f in enumerate(header_fields) if f == key), -1))
        return indexes

    def _requested(self, requested_fields: Any) -> List[str]:
        """Requested field names; anything other than a list or tuple means the defaults."""
        if isinstance(requested_fields, (list, tuple)):
            return [str(f) for f in requested_fields]
        return list(DEFAULT_SYNONYMS)

    def _coerce(self, raw_table: Any) -> RawTable:
        if isinstance(raw_table, RawTable):
            return RawTable.lenient(raw_table.headers, raw_table.rows)
        if isinstance(raw_table, dict):
            return RawTable.lenient(raw_table.get("headers"), raw_table.get("rows"))
        return RawTable.lenient([], [])


canonical_mapper = CanonicalMapper()


def map_to_canonical(raw_table: Any, requested_fields: Optional[Sequence[str]] = None) -> MappingResult:
    """Module-level shortcut using the default rule table."""
    return canonical_mapper.map_to_canonical(raw_table, requested_fields)
