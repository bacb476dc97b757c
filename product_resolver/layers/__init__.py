"""Layers package initialization."""
from product_resolver.layers.site_registry import SiteRegistry, site_registry
from product_resolver.layers.resolution import FactResolver, normalize_availability
from product_resolver.layers.pipeline import ExtractionPipeline, ExtractionTrace

__all__ = [
    "SiteRegistry",
    "site_registry",
    "FactResolver",
    "normalize_availability",
    "ExtractionPipeline",
    "ExtractionTrace",
]
