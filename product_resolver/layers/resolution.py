"""
Fact Joiner & Source Arbiter for the Product Fact Resolver.
Joins sizes across sources, picks the authoritative candidate set
and renders it into the fixed resolver table.
"""
from typing import Any, List, Optional, Tuple

from product_resolver.config import config
from product_resolver.models.product import (
    CandidateRecord,
    CandidateSet,
    Provenance,
    SizeIndex,
)
from product_resolver.models.table import RESOLVER_HEADERS, RawTable
from product_resolver.utils.logger import LayerLogger


def normalize_availability(value: Any, not_available: Optional[str] = None) -> str:
    """
    Reduce an availability value to a bare tag.

    "https://schema.org/InStock" -> "InStock". Booleans map to
    InStock/OutOfStock. Absent or unusable values become the sentinel.
    """
    sentinel = config.NOT_AVAILABLE if not_available is None else not_available
    if isinstance(value, bool):
        return "InStock" if value else "OutOfStock"
    if not isinstance(value, str):
        return sentinel
    segments = [segment.strip() for segment in value.split("/") if segment.strip()]
    return segments[-1] if segments else sentinel


def format_price(value: Any, not_available: Optional[str] = None) -> str:
    """Numbers get two decimals; strings pass through stripped."""
    sentinel = config.NOT_AVAILABLE if not_available is None else not_available
    if value is None or isinstance(value, bool):
        return sentinel
    if isinstance(value, (int, float)):
        return f"{float(value):.2f}"
    text = str(value).strip()
    return text or sentinel


class FactResolver:
    """
    Fact Joiner & Source Arbiter.

    - Fills missing sizes from the SizeIndex by derived code
    - Selects the richer CandidateSet (ties favour embedded-state)
    - Emits a single sentinel row when no source produced anything
    """

    def __init__(self, not_available: Optional[str] = None):
        self.not_available = config.NOT_AVAILABLE if not_available is None else not_available
        self.logger = LayerLogger("fact_resolver")

    def resolve(
        self,
        linked_data: CandidateSet,
        embedded_state: CandidateSet,
        size_index: SizeIndex,
    ) -> RawTable:
        """
        Reconcile both candidate sets into the 8-column resolver table.

        Args:
            linked_data: Candidates from the JSON-LD blocks
            embedded_state: Candidates from the hydration state
            size_index: derived_code -> size from the hydration state

        Returns:
            RawTable with RESOLVER_HEADERS; never empty
        """
        table, _ = self.arbitrate(linked_data, embedded_state, size_index)
        return table

    def arbitrate(
        self,
        linked_data: CandidateSet,
        embedded_state: CandidateSet,
        size_index: SizeIndex,
    ) -> Tuple[RawTable, Optional[Provenance]]:
        """
        Same as resolve, also returning the provenance of the set that
        produced the rows (None for the sentinel row).
        """
        linked_data = self.join_sizes(linked_data, size_index)
        embedded_state = self.join_sizes(embedded_state, size_index)

        chosen = self.select_source(linked_data, embedded_state)
        if chosen is None:
            self.logger.log_decision(
                decision="placeholder_row",
                reason="both candidate sets are empty",
            )
            return RawTable(
                headers=list(RESOLVER_HEADERS),
                rows=[[self.not_available] * len(RESOLVER_HEADERS)],
            ), None

        rows = [self.to_row(record) for record in chosen.records]
        self.logger.log_action(
            "resolve",
            "completed",
            source=chosen.provenance.value,
            rows=len(rows),
            sizes_filled=sum(1 for r in chosen.records if r.size),
        )
        return RawTable(headers=list(RESOLVER_HEADERS), rows=rows), chosen.provenance

    def join_sizes(self, candidates: CandidateSet, size_index: SizeIndex) -> CandidateSet:
        """Return a copy of the set with absent sizes filled from the index."""
        records: List[CandidateRecord] = []
        filled = 0
        for record in candidates.records:
            code = record.derived_code
            if not record.size and code and code in size_index:
                record = record.model_copy(update={"size": size_index[code]})
                filled += 1
            records.append(record)

        if filled:
            self.logger.log_action(
                "size_join",
                "completed",
                source=candidates.provenance.value,
                filled=filled,
                total=len(records),
            )
        return CandidateSet(provenance=candidates.provenance, records=records)

    def select_source(
        self,
        linked_data: CandidateSet,
        embedded_state: CandidateSet,
    ) -> Optional[CandidateSet]:
        """
        Pick the authoritative set.

        More records wins; on a tie the embedded-state set is used.
        Returns None when both are empty.
        """
        if linked_data.is_empty and embedded_state.is_empty:
            return None
        if embedded_state.is_empty:
            chosen, reason = linked_data, "only_source_with_records"
        elif linked_data.is_empty:
            chosen, reason = embedded_state, "only_source_with_records"
        elif len(linked_data) > len(embedded_state):
            chosen, reason = linked_data, "more_records"
        else:
            chosen = embedded_state
            reason = "more_records" if len(embedded_state) > len(linked_data) else "tie_prefers_embedded_state"

        self.logger.log_decision(
            decision=chosen.provenance.value,
            reason=reason,
            linked_data_records=len(linked_data),
            embedded_state_records=len(embedded_state),
        )
        return chosen

    def to_row(self, record: CandidateRecord) -> List[str]:
        """Render one record in RESOLVER_HEADERS order."""
        na = self.not_available
        return [
            record.identifier or na,
            record.derived_code or na,
            record.source_url or na,
            record.color or na,
            record.size or na,
            format_price(record.current_price, na),
            format_price(record.reference_price, na),
            normalize_availability(record.availability_tag, na),
        ]
