"""
Unit tests for the JSON-LD offer extractor.
"""

from pages import ld_json_script, page

from product_resolver.adapters.linked_data import LinkedDataExtractor
from product_resolver.models.product import Provenance, RawPayload


def extract(html, url="https://www.macys.com/shop/product/x?ID=1"):
    return LinkedDataExtractor().extract(RawPayload(url=url, html=html))


def test_flattens_product_offers(product_jsonld):
    result = extract(page(ld_json_script(product_jsonld)))

    assert result.provenance == Provenance.LINKED_DATA
    assert [r.identifier for r in result.records] == ["USA100", "USA200"]

    first, second = result.records
    assert first.color == "Red"
    assert first.size is None
    assert first.current_price == 49.99
    assert first.reference_price is None
    assert first.availability_tag == "https://schema.org/InStock"
    assert first.source_url == "https://www.macys.com/shop/product/sweater?ID=100"

    assert second.color == "Blue"
    assert second.size == "L"
    assert second.current_price == "39.99"
    assert second.reference_price == "59.99"


def test_ignores_non_product_nodes():
    breadcrumb = {"@type": "BreadcrumbList", "itemListElement": []}
    org = {"@type": "Organization", "name": "Shop", "offers": {"sku": "1"}}
    assert extract(page(ld_json_script(breadcrumb), ld_json_script(org))).records == []


def test_malformed_block_is_skipped(product_jsonld):
    broken = '<script type="application/ld+json">{"@type": "Product", "offers": [</script>'
    result = extract(page(broken, ld_json_script(product_jsonld)))
    assert len(result.records) == 2


def test_graph_and_array_containers():
    graph = {
        "@context": "https://schema.org",
        "@graph": [
            {"@type": "WebPage", "name": "x"},
            {"@type": ["Product", "Thing"], "offers": {"sku": "111", "price": "10"}},
        ],
    }
    array = [{"@type": "Product", "offers": {"sku": "222", "price": "20"}}]
    result = extract(page(ld_json_script(graph), ld_json_script(array)))
    assert [r.identifier for r in result.records] == ["111", "222"]


def test_aggregate_offer_and_product_group_variants():
    group = {
        "@type": "ProductGroup",
        "hasVariant": [
            {
                "@type": "Product",
                "sku": "V-1",
                "color": "Green",
                "size": "S",
                "offers": {"@type": "Offer", "price": 12},
            },
        ],
        "offers": {
            "@type": "AggregateOffer",
            "offers": [{"@type": "Offer", "sku": "A-1", "lowPrice": "9.50"}],
        },
    }
    result = extract(page(ld_json_script(group)))
    by_id = {r.identifier: r for r in result.records}

    assert set(by_id) == {"A-1", "V-1"}
    assert by_id["A-1"].current_price == "9.50"
    assert by_id["V-1"].color == "Green"
    assert by_id["V-1"].size == "S"


def test_offer_without_identifier_is_dropped():
    product = {"@type": "Product", "offers": [{"price": "1"}, {"sku": "7", "price": "2"}]}
    result = extract(page(ld_json_script(product)))
    assert [r.identifier for r in result.records] == ["7"]


def test_price_falls_back_to_absent():
    product = {"@type": "Product", "offers": {"sku": "7", "priceSpecification": {"priceType": "ListPrice", "price": "5"}}}
    record = extract(page(ld_json_script(product))).records[0]
    assert record.current_price is None
    assert record.reference_price == "5"


def test_source_url_falls_back_to_page_url():
    product = {"@type": "Product", "offers": {"sku": "7"}}
    record = extract(page(ld_json_script(product)), url="https://www.macys.com/p").records[0]
    assert record.source_url == "https://www.macys.com/p"


def test_empty_html_yields_empty_set():
    assert extract("").is_empty


def test_deeply_nested_block_is_skipped(product_jsonld):
    deep = '<script type="application/ld+json">' + "[" * 100000 + "]" * 100000 + "</script>"
    result = extract(page(deep, ld_json_script(product_jsonld)))
    assert len(result.records) == 2
