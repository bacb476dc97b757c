"""
Candidate models for the Product Fact Resolver.
These models represent what each extractor observed on a page before
the sources are joined and arbitrated.
"""
import re
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

from product_resolver.config import config


NON_DIGITS = re.compile(r"\D")

# derived_code -> size, built from the embedded-state source
SizeIndex = Dict[str, str]

PriceValue = Union[float, int, str]


def derive_code(identifier: Any, market_codes: Optional[Iterable[str]] = None) -> str:
    """
    Compute the numeric join key for an identifier.

    Market-code substrings (e.g. "USA") are removed first, then every
    non-digit character. "SKU100USA" -> "100".
    """
    if identifier is None:
        return ""
    text = str(identifier)
    codes = config.get_market_codes() if market_codes is None else market_codes
    for code in codes:
        if code:
            text = text.replace(code, "")
    return NON_DIGITS.sub("", text)


class Provenance(str, Enum):
    """Which channel of the page a candidate set came from."""
    LINKED_DATA = "linked-data"
    EMBEDDED_STATE = "embedded-state"


class RawPayload(BaseModel):
    """
    Page content handed over by the page-loading collaborator.

    Immutable: extractors only read from it.
    """
    model_config = ConfigDict(frozen=True)

    url: str
    html: str = ""
    state: Optional[Dict[str, Any]] = None


class CandidateRecord(BaseModel):
    """One offer/variant observation before joining."""
    identifier: str
    color: Optional[str] = None
    size: Optional[str] = None
    current_price: Optional[PriceValue] = None
    reference_price: Optional[PriceValue] = None
    availability_tag: Optional[Any] = None
    source_url: str = ""

    @computed_field
    @property
    def derived_code(self) -> str:
        return derive_code(self.identifier)


class CandidateSet(BaseModel):
    """Ordered records from a single extractor, tagged with their provenance."""
    provenance: Provenance
    records: List[CandidateRecord] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records
