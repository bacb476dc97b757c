# conftest.py
# Ensure the repository root is on sys.path so the tests import the
# product_resolver package from the working tree, and provide shared
# page fixtures.

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)

if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)


@pytest.fixture
def product_jsonld():
    """JSON-LD product with two offers, shaped like a Macy's product page."""
    return {
        "@context": "https://schema.org",
        "@type": "Product",
        "name": "Cotton Crewneck Sweater",
        "url": "https://www.macys.com/shop/product/sweater?ID=100",
        "offers": [
            {
                "@type": "Offer",
                "SKU": "USA100",
                "price": 49.99,
                "availability": "https://schema.org/InStock",
                "itemOffered": {"@type": "Product", "color": "Red"},
            },
            {
                "@type": "Offer",
                "SKU": "USA200",
                "priceSpecification": [
                    {"@type": "UnitPriceSpecification", "price": "39.99"},
                    {"@type": "UnitPriceSpecification", "priceType": "https://schema.org/ListPrice", "price": "59.99"},
                ],
                "availability": "https://schema.org/OutOfStock",
                "itemOffered": {
                    "@type": "Product",
                    "color": "Blue",
                    "attributes": [{"name": "Size", "value": " L "}],
                },
            },
        ],
    }


@pytest.fixture
def macys_url():
    return "https://www.macys.com/shop/product/sweater?ID=100"
