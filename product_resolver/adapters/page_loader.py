"""
Page Loader Adapter for the Product Fact Resolver.
Fetches a page once and hands it over as a RawPayload.

This is deliberately thin: one GET, no retries, no proxies. Pages that
need rendering should be sent to the API with their HTML instead.
"""
from typing import Optional

import httpx

from product_resolver.config import config
from product_resolver.exceptions import PageLoadError
from product_resolver.models.product import RawPayload
from product_resolver.utils.logger import LayerLogger


class PageLoader:
    """Fetch HTML for a product page URL."""

    def __init__(self, timeout: Optional[int] = None):
        self.timeout = timeout or config.REQUEST_TIMEOUT
        self.logger = LayerLogger("page_loader")

    async def load(self, url: str) -> RawPayload:
        """
        Fetch the page and wrap it in a RawPayload.

        Raises:
            PageLoadError: on any transport error or non-2xx status
        """
        self.logger.log_action("fetch_html", "started", url=url)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(url, headers=self._get_headers())
                response.raise_for_status()
                html = response.text
        except httpx.HTTPError as e:
            self.logger.log_error(
                f"Failed to fetch URL: {str(e)}",
                error_type="http_error",
                url=url
            )
            raise PageLoadError(f"Could not load page: {str(e)}", url=url) from e

        self.logger.log_action(
            "fetch_html",
            "completed",
            url=url,
            status_code=response.status_code,
            content_length=len(html)
        )
        return RawPayload(url=str(response.url), html=html)

    def _get_headers(self) -> dict:
        """Get request headers mimicking a browser."""
        return {
            "User-Agent": config.USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }
