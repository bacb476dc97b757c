"""
Site Registry for the Product Fact Resolver.
This is the dispatcher that decides which site policy applies to a page.
"""
import re
from typing import List, Optional, Tuple
from urllib.parse import urlparse

from product_resolver.models.policy import ResolverPolicy
from product_resolver.utils.logger import LayerLogger


AUTO = "auto"


MACYS = ResolverPolicy(
    id="macys",
    name="Macy's",
    host_pattern=re.compile(r"(^|\.)macys\.com$", re.IGNORECASE),
    state_marker="window.__INITIAL_STATE__",
    state_path=("pageData", "product", "product", "relationships", "upcs"),
)

DEFAULT_POLICIES: Tuple[ResolverPolicy, ...] = (MACYS,)


class SiteRegistry:
    """
    Site Registry - maps a site hint or page URL to a ResolverPolicy.

    Lookups are pure; the policy table never changes after construction.
    """

    def __init__(self, policies: Tuple[ResolverPolicy, ...] = DEFAULT_POLICIES):
        self._policies = tuple(policies)
        self.logger = LayerLogger("site_registry")

    @property
    def policies(self) -> List[ResolverPolicy]:
        return list(self._policies)

    def select(self, site_hint: Optional[str], page_url: Optional[str]) -> Optional[ResolverPolicy]:
        """
        Select the policy for a page.

        Args:
            site_hint: Explicit policy id, or "auto"/empty to match by host
            page_url: The product page URL

        Returns:
            The matching ResolverPolicy, or None when no policy applies
        """
        if site_hint and site_hint.strip().lower() != AUTO:
            policy = self._by_id(site_hint.strip())
            self.logger.log_decision(
                decision=policy.id if policy else "no_policy",
                reason="explicit_site_id",
                url=page_url,
                site_hint=site_hint,
            )
            return policy

        host = self._host_of(page_url)
        if not host:
            self.logger.log_decision(
                decision="no_policy",
                reason="unparsable_url",
                url=page_url,
            )
            return None

        for policy in self._policies:
            if policy.matches_host(host):
                self.logger.log_decision(
                    decision=policy.id,
                    reason="host_pattern_match",
                    url=page_url,
                    host=host,
                )
                return policy

        self.logger.log_decision(
            decision="no_policy",
            reason="no_host_pattern_matched",
            url=page_url,
            host=host,
        )
        return None

    def _by_id(self, site_id: str) -> Optional[ResolverPolicy]:
        for policy in self._policies:
            if policy.id == site_id:
                return policy
        return None

    def _host_of(self, page_url: Optional[str]) -> Optional[str]:
        if not page_url:
            return None
        try:
            return urlparse(page_url.strip()).hostname
        except ValueError:
            return None


site_registry = SiteRegistry()
