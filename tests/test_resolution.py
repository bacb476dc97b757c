"""
Unit tests for the fact joiner and source arbiter.
"""

import pytest

from product_resolver.layers.resolution import (
    FactResolver,
    format_price,
    normalize_availability,
)
from product_resolver.models.product import CandidateRecord, CandidateSet, Provenance
from product_resolver.models.table import RESOLVER_HEADERS


def linked(*records):
    return CandidateSet(provenance=Provenance.LINKED_DATA, records=list(records))


def embedded(*records):
    return CandidateSet(provenance=Provenance.EMBEDDED_STATE, records=list(records))


def rec(identifier, **kwargs):
    kwargs.setdefault("source_url", "https://www.macys.com/p")
    return CandidateRecord(identifier=identifier, **kwargs)


@pytest.fixture
def resolver():
    return FactResolver(not_available="N/A")


class TestSelectSource:
    def test_larger_embedded_set_wins(self, resolver):
        chosen = resolver.select_source(
            linked(rec("1"), rec("2")),
            embedded(*(rec(str(i)) for i in range(5))),
        )
        assert chosen.provenance == Provenance.EMBEDDED_STATE

    def test_larger_linked_set_wins(self, resolver):
        chosen = resolver.select_source(linked(rec("1"), rec("2")), embedded(rec("3")))
        assert chosen.provenance == Provenance.LINKED_DATA

    def test_tie_prefers_embedded_state(self, resolver):
        chosen = resolver.select_source(linked(rec("1"), rec("2")), embedded(rec("3"), rec("4")))
        assert chosen.provenance == Provenance.EMBEDDED_STATE

    def test_single_non_empty_source_is_used(self, resolver):
        assert resolver.select_source(linked(rec("1")), embedded()).provenance == Provenance.LINKED_DATA
        assert resolver.select_source(linked(), embedded(rec("1"))).provenance == Provenance.EMBEDDED_STATE

    def test_both_empty(self, resolver):
        assert resolver.select_source(linked(), embedded()) is None


class TestJoinSizes:
    def test_fills_missing_size_by_derived_code(self, resolver):
        joined = resolver.join_sizes(linked(rec("SKU100USA"), rec("SKU200USA")), {"100": "M"})
        assert [r.size for r in joined.records] == ["M", None]

    def test_existing_size_is_kept(self, resolver):
        joined = resolver.join_sizes(linked(rec("100", size="S")), {"100": "M"})
        assert joined.records[0].size == "S"

    def test_empty_derived_code_never_matches(self, resolver):
        joined = resolver.join_sizes(linked(rec("NODIGITS")), {"": "M"})
        assert joined.records[0].size is None

    def test_input_set_is_not_mutated(self, resolver):
        original = linked(rec("100"))
        resolver.join_sizes(original, {"100": "M"})
        assert original.records[0].size is None


class TestResolve:
    def test_linked_record_joined_with_size_index(self, resolver):
        table = resolver.resolve(
            linked(rec("SKU100USA", color="Red", current_price="49.99")),
            embedded(),
            {"100": "M"},
        )

        assert table.headers == RESOLVER_HEADERS
        assert len(table.rows) == 1
        row = dict(zip(table.headers, table.rows[0]))
        assert row["sku"] == "SKU100USA"
        assert row["upc"] == "100"
        assert row["size"] == "M"
        assert row["color"] == "Red"
        assert row["currentPrice"] == "49.99"
        assert row["regularPrice"] == "N/A"
        assert row["availability"] == "N/A"

    def test_both_empty_yields_single_sentinel_row(self, resolver):
        table = resolver.resolve(linked(), embedded(), {})
        assert table.rows == [["N/A"] * 8]

    def test_rows_keep_source_order(self, resolver):
        table = resolver.resolve(linked(rec("3"), rec("1"), rec("2")), embedded(), {})
        assert [row[0] for row in table.rows] == ["3", "1", "2"]

    def test_custom_sentinel(self):
        table = FactResolver(not_available="-").resolve(linked(), embedded(), {})
        assert table.rows == [["-"] * 8]

    def test_arbitrate_reports_chosen_provenance(self, resolver):
        table, source = resolver.arbitrate(linked(rec("1")), embedded(rec("2"), rec("3")), {})
        assert source == Provenance.EMBEDDED_STATE
        assert [row[0] for row in table.rows] == ["2", "3"]

    def test_arbitrate_sentinel_row_has_no_provenance(self, resolver):
        table, source = resolver.arbitrate(linked(), embedded(), {})
        assert source is None
        assert table.rows == [["N/A"] * 8]


class TestFormatting:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("https://schema.org/InStock", "InStock"),
            ("http://schema.org/OutOfStock/", "OutOfStock"),
            ("LimitedAvailability", "LimitedAvailability"),
            (True, "InStock"),
            (False, "OutOfStock"),
            ("", "N/A"),
            ("///", "N/A"),
            (None, "N/A"),
            ({"status": "x"}, "N/A"),
        ],
    )
    def test_normalize_availability(self, value, expected):
        assert normalize_availability(value, "N/A") == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            (49.99, "49.99"),
            (50, "50.00"),
            (" 19.99 ", "19.99"),
            ("$20", "$20"),
            (None, "N/A"),
            ("", "N/A"),
        ],
    )
    def test_format_price(self, value, expected):
        assert format_price(value, "N/A") == expected
