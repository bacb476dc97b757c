"""Adapters package initialization."""
from product_resolver.adapters.linked_data import LinkedDataExtractor
from product_resolver.adapters.embedded_state import EmbeddedStateExtractor, extract_balanced_object
from product_resolver.adapters.page_loader import PageLoader

__all__ = ["LinkedDataExtractor", "EmbeddedStateExtractor", "extract_balanced_object", "PageLoader"]
