"""
Linked-Data Extractor for the Product Fact Resolver.
Reads schema.org Product/Offer JSON-LD blocks into candidate records.
"""
import json
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from product_resolver.models.product import (
    CandidateRecord,
    CandidateSet,
    Provenance,
    RawPayload,
)
from product_resolver.utils.logger import LayerLogger
from product_resolver.utils.lookup import (
    NOT_FOUND,
    Found,
    Lookup,
    dig,
    find_attribute,
    first_found,
    found,
    or_none,
)


PRODUCT_TYPES = {"Product", "ProductGroup", "IndividualProduct", "ProductModel"}

# priceSpecification.priceType values that denote the struck-through price
REFERENCE_PRICE_TYPES = ("ListPrice", "StrikethroughPrice", "MSRP", "SRP")

GTIN_KEYS = ("gtin", "gtin13", "gtin12", "gtin14", "gtin8")


class LinkedDataExtractor:
    """
    Linked-data extractor.

    Parses every <script type="application/ld+json"> block once, keeps
    product nodes and flattens their offers into CandidateRecords.
    Malformed blocks are skipped; they only make the result poorer.
    """

    def __init__(self):
        self.logger = LayerLogger("linked_data_extractor")

    def extract(self, payload: RawPayload) -> CandidateSet:
        """
        Extract offer candidates from the payload's JSON-LD.

        Args:
            payload: The page payload (only ``html`` and ``url`` are read)

        Returns:
            CandidateSet tagged "linked-data", possibly empty
        """
        result = CandidateSet(provenance=Provenance.LINKED_DATA)
        if not payload.html:
            self.logger.log_action("linked_data_extraction", "no_html", url=payload.url)
            return result

        products = self._product_nodes(payload.html)
        for product in products:
            result.records.extend(self._records_for_product(product, payload.url))

        self.logger.log_action(
            "linked_data_extraction",
            "completed",
            url=payload.url,
            product_nodes=len(products),
            records=len(result.records),
        )
        return result

    # =========================================================================
    # JSON-LD parsing
    # =========================================================================

    def _product_nodes(self, html: str) -> List[Dict[str, Any]]:
        """Parse all JSON-LD scripts and return the nodes typed as products."""
        soup = BeautifulSoup(html, "lxml")
        nodes: List[Dict[str, Any]] = []

        for index, script in enumerate(soup.find_all("script", type="application/ld+json")):
            text = script.string or script.get_text()
            if not text or not text.strip():
                continue
            try:
                nodes.extend(self._flatten_jsonld(json.loads(text)))
            except json.JSONDecodeError as e:
                self.logger.log_skip(f"ld+json[{index}]", reason=f"invalid_json: {e.msg}")
            except RecursionError:
                self.logger.log_skip(f"ld+json[{index}]", reason="nested_too_deeply")

        return [node for node in nodes if self._is_product(node)]

    def _flatten_jsonld(self, data: Any) -> List[Dict[str, Any]]:
        """
        Flatten JSON-LD structure into a list of schema nodes.

        Handles:
        - Single object with @type
        - @graph containers
        - Arrays of objects
        """
        nodes = []

        if isinstance(data, dict):
            if "@graph" in data:
                nodes.extend(self._flatten_jsonld(data["@graph"]))
            if "@type" in data:
                nodes.append(data)

        elif isinstance(data, list):
            for item in data:
                nodes.extend(self._flatten_jsonld(item))

        return nodes

    def _is_product(self, node: Dict[str, Any]) -> bool:
        schema_type = node.get("@type")
        if isinstance(schema_type, list):
            return any(t in PRODUCT_TYPES for t in schema_type if isinstance(t, str))
        return schema_type in PRODUCT_TYPES

    # =========================================================================
    # Offer flattening
    # =========================================================================

    def _records_for_product(self, product: Dict[str, Any], page_url: str) -> List[CandidateRecord]:
        records = []
        for offer in self._offers_of(product.get("offers")):
            record = self._offer_to_record(product, offer, page_url)
            if record:
                records.append(record)

        # ProductGroup variants carry their own offers
        variants = product.get("hasVariant")
        if isinstance(variants, dict):
            variants = [variants]
        if isinstance(variants, list):
            for variant in variants:
                if isinstance(variant, dict):
                    records.extend(self._records_for_product(variant, page_url))

        return records

    def _offers_of(self, offers: Any) -> List[Dict[str, Any]]:
        """Flatten offers: a dict, a list, or an AggregateOffer with nested offers."""
        if isinstance(offers, list):
            flat = []
            for offer in offers:
                flat.extend(self._offers_of(offer))
            return flat
        if isinstance(offers, dict):
            nested = offers.get("offers")
            if nested:
                return self._offers_of(nested)
            return [offers]
        return []

    def _offer_to_record(
        self,
        product: Dict[str, Any],
        offer: Dict[str, Any],
        page_url: str,
    ) -> Optional[CandidateRecord]:
        item = offer.get("itemOffered") if isinstance(offer.get("itemOffered"), dict) else {}

        identifier = self._identifier(product, offer, item)
        if not identifier:
            self.logger.log_skip("offer", reason="no_identifier")
            return None

        return CandidateRecord(
            identifier=str(identifier.value),
            color=or_none(self._attribute(product, offer, item, "color"), str),
            size=or_none(self._attribute(product, offer, item, "size"), str),
            current_price=or_none(self._current_price(offer)),
            reference_price=or_none(self._reference_price(offer)),
            availability_tag=or_none(dig(offer, "availability")),
            source_url=or_none(first_found(dig(offer, "url"), dig(product, "url")), str) or page_url,
        )

    def _identifier(self, product: Dict[str, Any], offer: Dict[str, Any], item: Dict[str, Any]) -> Lookup:
        return first_found(
            dig(offer, "SKU"),
            dig(offer, "sku"),
            dig(item, "sku"),
            *(dig(offer, key) for key in GTIN_KEYS),
            dig(product, "sku"),
        )

    def _attribute(
        self,
        product: Dict[str, Any],
        offer: Dict[str, Any],
        item: Dict[str, Any],
        name: str,
    ) -> Lookup:
        """Read color/size from the offer, its itemOffered, then the product."""
        return first_found(
            *(self._scalar(lookup) for lookup in (
                dig(offer, name),
                dig(item, name),
                find_attribute(item.get("attributes"), name),
                find_attribute(offer.get("attributes"), name),
                dig(product, name),
            ))
        )

    def _current_price(self, offer: Dict[str, Any]) -> Lookup:
        """Fallback chain: direct price -> priceSpecification price -> lowPrice."""
        return first_found(
            self._price_value(dig(offer, "price")),
            self._spec_price(offer.get("priceSpecification"), reference=False),
            self._price_value(dig(offer, "lowPrice")),
        )

    def _reference_price(self, offer: Dict[str, Any]) -> Lookup:
        return self._spec_price(offer.get("priceSpecification"), reference=True)

    def _spec_price(self, spec: Any, reference: bool) -> Lookup:
        specs = spec if isinstance(spec, list) else [spec]
        for entry in specs:
            if not isinstance(entry, dict):
                continue
            price_type = str(entry.get("priceType") or "")
            is_reference = any(t in price_type for t in REFERENCE_PRICE_TYPES)
            if is_reference != reference:
                continue
            lookup = self._price_value(dig(entry, "price"))
            if lookup:
                return lookup
        return NOT_FOUND

    def _scalar(self, lookup: Lookup) -> Lookup:
        if isinstance(lookup, Found) and isinstance(lookup.value, (dict, list)):
            return NOT_FOUND
        return lookup

    def _price_value(self, lookup: Lookup) -> Lookup:
        """Accept only scalar prices; nested objects are not a price."""
        if not lookup or isinstance(lookup.value, (dict, list, bool)):
            return NOT_FOUND
        if isinstance(lookup.value, str):
            return found(lookup.value.strip())
        return lookup
