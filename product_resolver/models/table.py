"""
Tabular models: the resolver's output contract and the canonical mapping result.
"""
from typing import Any, List

from pydantic import BaseModel, Field, field_validator, model_validator


# Fixed column order of every resolver output, regardless of source
RESOLVER_HEADERS = [
    "sku",
    "upc",
    "url",
    "color",
    "size",
    "currentPrice",
    "regularPrice",
    "availability",
]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class RawTable(BaseModel):
    """Headers plus rows of strings, each row the same length as the headers."""
    headers: List[str] = Field(default_factory=list)
    rows: List[List[str]] = Field(default_factory=list)

    @field_validator("headers")
    @classmethod
    def _unique_headers(cls, headers: List[str]) -> List[str]:
        if len(set(headers)) != len(headers):
            raise ValueError("headers must be unique")
        return headers

    @model_validator(mode="after")
    def _rows_match_headers(self) -> "RawTable":
        width = len(self.headers)
        for index, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(
                    f"row {index} has {len(row)} cells, expected {width}"
                )
        return self

    @classmethod
    def lenient(cls, headers: Any, rows: Any) -> "RawTable":
        """
        Build a well-formed table from arbitrary input.

        Cells are stringified, rows padded or truncated to the header
        count, and repeated headers suffixed so they stay unique.
        """
        clean_headers: List[str] = []
        seen = {}
        for header in headers if isinstance(headers, (list, tuple)) else []:
            name = _cell(header)
            if name in seen:
                seen[name] += 1
                name = f"{name}_{seen[name]}"
            else:
                seen[name] = 0
            clean_headers.append(name)

        width = len(clean_headers)
        clean_rows: List[List[str]] = []
        for row in rows if isinstance(rows, (list, tuple)) else []:
            cells = [_cell(v) for v in row] if isinstance(row, (list, tuple)) else []
            cells = cells[:width] + [""] * (width - len(cells[:width]))
            clean_rows.append(cells)

        return cls.model_construct(headers=clean_headers, rows=clean_rows)


class MappingResult(BaseModel):
    """Rows projected into the caller's requested canonical field order."""
    headers: List[str]
    table: List[List[str]] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0, default=0.0)
