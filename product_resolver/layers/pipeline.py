"""
Extraction Pipeline for the Product Fact Resolver.
Runs both extractors over one payload and hands their output to the arbiter.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from product_resolver.adapters.embedded_state import EmbeddedStateExtractor
from product_resolver.adapters.linked_data import LinkedDataExtractor
from product_resolver.layers.resolution import FactResolver
from product_resolver.models.policy import ResolverPolicy
from product_resolver.models.product import RawPayload
from product_resolver.models.table import RawTable
from product_resolver.utils.logger import LayerLogger


@dataclass
class ExtractionTrace:
    """
    Caller-owned record of what the pipeline saw and decided.

    Created by the caller only when debugging is requested; the pipeline
    writes to it if one is passed in and keeps no trace state of its own.
    """
    events: List[Dict[str, Any]] = field(default_factory=list)

    def record(self, step: str, **detail) -> None:
        self.events.append({"step": step, **detail})

    def to_dict(self) -> Dict[str, Any]:
        return {"events": list(self.events)}


class ExtractionPipeline:
    """
    Extraction Pipeline - extractors, then join and arbitration.

    Stateless between calls; one instance serves every request.
    """

    def __init__(
        self,
        linked_data_extractor: Optional[LinkedDataExtractor] = None,
        embedded_state_extractor: Optional[EmbeddedStateExtractor] = None,
        resolver: Optional[FactResolver] = None,
    ):
        self.linked_data_extractor = linked_data_extractor or LinkedDataExtractor()
        self.embedded_state_extractor = embedded_state_extractor or EmbeddedStateExtractor()
        self.resolver = resolver or FactResolver()
        self.logger = LayerLogger("extraction_pipeline")

    def run(
        self,
        policy: ResolverPolicy,
        payload: RawPayload,
        trace: Optional[ExtractionTrace] = None,
    ) -> RawTable:
        """
        Resolve a page payload into the 8-column resolver table.

        Args:
            policy: Site policy selected by the registry
            payload: Page HTML and optional pre-parsed state
            trace: Optional side channel to record intermediate results

        Returns:
            RawTable (a single sentinel row when nothing was found)
        """
        self.logger.log_action(
            "extraction",
            "started",
            site_id=policy.id,
            url=payload.url,
            html_length=len(payload.html),
            state_supplied=payload.state is not None,
        )

        linked = self.linked_data_extractor.extract(payload)
        embedded, size_index = self.embedded_state_extractor.extract(payload, policy)

        if trace is not None:
            trace.record(
                "linked_data",
                records=len(linked),
                identifiers=[r.identifier for r in linked.records],
            )
            trace.record(
                "embedded_state",
                records=len(embedded),
                identifiers=[r.identifier for r in embedded.records],
            )
            trace.record("size_index", entries=dict(size_index))

        table, source = self.resolver.arbitrate(linked, embedded, size_index)

        if trace is not None:
            trace.record(
                "arbitration",
                source=source.value if source is not None else None,
                rows=len(table.rows),
            )

        self.logger.log_action(
            "extraction",
            "completed",
            site_id=policy.id,
            url=payload.url,
            rows=len(table.rows),
        )
        return table
