"""
Embedded-State Extractor for the Product Fact Resolver.
Reads the page's hydration state object (e.g. window.__INITIAL_STATE__)
for size-unit records and, where present, richer per-offer records.
"""
import json
import re
from typing import Any, Dict, List, Optional, Tuple

from product_resolver.models.policy import ResolverPolicy
from product_resolver.models.product import (
    CandidateRecord,
    CandidateSet,
    Provenance,
    RawPayload,
    SizeIndex,
    derive_code,
)
from product_resolver.utils.logger import LayerLogger
from product_resolver.utils.lookup import (
    NOT_FOUND,
    Found,
    Lookup,
    dig,
    find_attribute,
    first_found,
    or_none,
)


def extract_balanced_object(text: str, marker: str) -> Optional[str]:
    """
    Return the source text of the object literal assigned at ``marker``.

    Only an assignment (``marker = {...}``) counts; reads of the same name
    earlier in the page, such as ``marker || {}``, are passed over.
    Starting at the first "{" after the assignment, counts +1 per "{" and
    -1 per "}" until the count returns to zero. Braces inside string
    literals are not counted, so values such as "</script>" or "{" inside
    strings do not end the object early.

    Returns None when no assignment is found or the object never closes.
    """
    assignment = re.search(re.escape(marker) + r"\s*=(?!=)", text)
    if assignment is None:
        return None
    start = text.find("{", assignment.end())
    if start < 0:
        return None

    depth = 0
    in_string = None
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == in_string:
                in_string = None
            continue
        if char in ('"', "'"):
            in_string = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


class EmbeddedStateExtractor:
    """
    Embedded-state extractor.

    Builds a SizeIndex from every size-unit record that carries a SIZE
    attribute, and a CandidateSet from records that also carry offer
    facts (color, price or availability). Any failure to find or parse
    the state degrades to an empty result.
    """

    def __init__(self):
        self.logger = LayerLogger("embedded_state_extractor")

    def extract(self, payload: RawPayload, policy: ResolverPolicy) -> Tuple[CandidateSet, SizeIndex]:
        """
        Extract size index and candidates from the hydration state.

        Args:
            payload: The page payload; a pre-parsed ``state`` wins over the HTML
            policy: Site policy naming the state marker and record path

        Returns:
            (CandidateSet tagged "embedded-state", SizeIndex)
        """
        candidates = CandidateSet(provenance=Provenance.EMBEDDED_STATE)
        size_index: SizeIndex = {}

        state = self._load_state(payload, policy)
        if state is None:
            return candidates, size_index

        units = self._unit_records(state, policy)
        if not units:
            self.logger.log_fallback(
                from_source="embedded_state",
                to_source="linked_data",
                reason="state_path_not_found",
                url=payload.url,
                state_path=".".join(policy.state_path),
            )
            return candidates, size_index

        for unit in units:
            code = derive_code(or_none(self._unit_identifier(unit)))

            size = self._unit_attribute(unit, "size")
            if code and isinstance(size, Found):
                size_index[code] = str(size.value)

            record = self._unit_to_record(unit, payload.url)
            if record:
                candidates.records.append(record)

        self.logger.log_action(
            "embedded_state_extraction",
            "completed",
            url=payload.url,
            units=len(units),
            sizes_indexed=len(size_index),
            records=len(candidates.records),
        )
        return candidates, size_index

    # =========================================================================
    # State location
    # =========================================================================

    def _load_state(self, payload: RawPayload, policy: ResolverPolicy) -> Optional[Dict[str, Any]]:
        if isinstance(payload.state, dict):
            self.logger.log_decision(
                decision="use_supplied_state",
                reason="state object passed with payload",
                url=payload.url,
            )
            return payload.state

        object_text = extract_balanced_object(payload.html or "", policy.state_marker)
        if object_text is None:
            self.logger.log_fallback(
                from_source="embedded_state",
                to_source="linked_data",
                reason="state_marker_not_found",
                url=payload.url,
                marker=policy.state_marker,
            )
            return None

        try:
            state = json.loads(object_text)
        except json.JSONDecodeError as e:
            self.logger.log_fallback(
                from_source="embedded_state",
                to_source="linked_data",
                reason=f"state_not_json: {e.msg}",
                url=payload.url,
            )
            return None
        except RecursionError:
            self.logger.log_fallback(
                from_source="embedded_state",
                to_source="linked_data",
                reason="state_nested_too_deeply",
                url=payload.url,
            )
            return None

        if not isinstance(state, dict):
            return None
        return state

    def _unit_records(self, state: Dict[str, Any], policy: ResolverPolicy) -> List[Dict[str, Any]]:
        """Size-unit records at the policy path, keyed object or list."""
        lookup = dig(state, *policy.state_path)
        if not lookup:
            return []
        units = lookup.value
        if isinstance(units, dict):
            units = list(units.values())
        if not isinstance(units, list):
            return []
        return [unit for unit in units if isinstance(unit, dict)]

    # =========================================================================
    # Unit record accessors
    # =========================================================================

    def _unit_identifier(self, unit: Dict[str, Any]) -> Lookup:
        return first_found(
            dig(unit, "identifier", "upcNumber"),
            dig(unit, "identifier", "upc"),
            dig(unit, "upcNumber"),
            dig(unit, "identifier", "skuId"),
            dig(unit, "id"),
        )

    def _unit_attribute(self, unit: Dict[str, Any], name: str) -> Lookup:
        lookup = first_found(
            find_attribute(unit.get("attributes"), name),
            dig(unit, name),
            dig(unit, "traits", name, "value"),
        )
        if isinstance(lookup, Found) and isinstance(lookup.value, (dict, list)):
            return NOT_FOUND
        return lookup

    def _unit_price(self, unit: Dict[str, Any], kind: str) -> Lookup:
        """Price of the given kind ("current" or "regular")."""
        lookup = first_found(
            dig(unit, "price", kind, "value"),
            dig(unit, "price", kind),
            dig(unit, "pricing", kind, "value"),
        )
        if isinstance(lookup, Found) and isinstance(lookup.value, (dict, list, bool)):
            return NOT_FOUND
        return lookup

    def _unit_availability(self, unit: Dict[str, Any]) -> Lookup:
        return first_found(
            dig(unit, "availability", "available"),
            dig(unit, "availability", "status"),
            dig(unit, "availability"),
        )

    def _unit_to_record(self, unit: Dict[str, Any], page_url: str) -> Optional[CandidateRecord]:
        """A unit is a full candidate only if it carries offer facts beyond size."""
        identifier = self._unit_identifier(unit)
        if not identifier:
            return None

        color = self._unit_attribute(unit, "color")
        current_price = self._unit_price(unit, "current")
        availability = self._unit_availability(unit)
        if isinstance(availability, Found) and isinstance(availability.value, dict):
            availability = NOT_FOUND

        if not (color or current_price or availability):
            return None

        return CandidateRecord(
            identifier=str(identifier.value),
            color=or_none(color, str),
            size=or_none(self._unit_attribute(unit, "size"), str),
            current_price=or_none(current_price),
            reference_price=or_none(self._unit_price(unit, "regular")),
            availability_tag=or_none(availability),
            source_url=or_none(dig(unit, "url"), str) or page_url,
        )
