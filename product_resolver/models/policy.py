"""
Site resolution policy model.
Holds the site-specific knowledge the extractors need for one retailer.
"""
from dataclasses import dataclass
from typing import Pattern, Tuple


@dataclass(frozen=True)
class ResolverPolicy:
    """Site-specific knowledge the extractors need for one retailer."""
    id: str
    name: str
    host_pattern: Pattern[str]
    # Assignment marker of the hydration state object in the page source
    state_marker: str = "window.__INITIAL_STATE__"
    # Key path from the state root to the size-unit records
    state_path: Tuple[str, ...] = ()

    def matches_host(self, host: str) -> bool:
        return bool(self.host_pattern.search(host))
