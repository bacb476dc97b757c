"""Models package initialization."""
from product_resolver.models.policy import ResolverPolicy
from product_resolver.models.product import (
    CandidateRecord,
    CandidateSet,
    Provenance,
    RawPayload,
    SizeIndex,
    derive_code,
)
from product_resolver.models.table import RESOLVER_HEADERS, MappingResult, RawTable

__all__ = [
    "ResolverPolicy",
    "CandidateRecord",
    "CandidateSet",
    "Provenance",
    "RawPayload",
    "SizeIndex",
    "derive_code",
    "RESOLVER_HEADERS",
    "MappingResult",
    "RawTable",
]
