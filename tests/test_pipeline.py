"""
Unit tests for the extraction pipeline and its debug trace.
"""

from pages import ld_json_script, macys_state, page, state_script, upc_unit

from product_resolver.layers.pipeline import ExtractionPipeline, ExtractionTrace
from product_resolver.layers.resolution import FactResolver
from product_resolver.layers.site_registry import MACYS
from product_resolver.models.product import RawPayload

URL = "https://www.macys.com/shop/product/sweater?ID=100"


class CountingResolver(FactResolver):
    def __init__(self):
        super().__init__(not_available="N/A")
        self.selections = 0

    def select_source(self, linked_data, embedded_state):
        self.selections += 1
        return super().select_source(linked_data, embedded_state)


def test_trace_records_each_step(product_jsonld):
    trace = ExtractionTrace()
    html = page(ld_json_script(product_jsonld), state_script(macys_state([upc_unit(100, size="M")])))

    table = ExtractionPipeline().run(MACYS, RawPayload(url=URL, html=html), trace)

    steps = {event["step"]: event for event in trace.events}
    assert list(steps) == ["linked_data", "embedded_state", "size_index", "arbitration"]
    assert steps["linked_data"]["identifiers"] == ["USA100", "USA200"]
    assert steps["size_index"]["entries"] == {"100": "M"}
    assert steps["arbitration"] == {"step": "arbitration", "source": "linked-data", "rows": len(table.rows)}


def test_arbitration_runs_once_with_trace(product_jsonld):
    resolver = CountingResolver()
    trace = ExtractionTrace()

    ExtractionPipeline(resolver=resolver).run(
        MACYS, RawPayload(url=URL, html=page(ld_json_script(product_jsonld))), trace
    )

    assert resolver.selections == 1
    assert trace.events[-1]["source"] == "linked-data"


def test_sentinel_row_traced_without_source():
    trace = ExtractionTrace()
    table = ExtractionPipeline().run(MACYS, RawPayload(url=URL, html=page()), trace)

    assert table.rows == [["N/A"] * 8]
    assert trace.events[-1]["source"] is None


def test_no_trace_by_default(product_jsonld):
    table = ExtractionPipeline().run(MACYS, RawPayload(url=URL, html=page(ld_json_script(product_jsonld))))
    assert len(table.rows) == 2
