"""Errors surfaced to API callers."""


class ResolverError(Exception):
    """Base class for errors the API reports as structured responses."""

    error_type = "resolver_error"
    status_code = 500

    def __init__(self, message: str, **detail):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        payload = {"error": self.message, "error_type": self.error_type}
        if self.detail:
            payload["detail"] = self.detail
        return payload


class UnsupportedSiteError(ResolverError):
    """No resolution policy knows this site."""

    error_type = "unsupported_site"
    status_code = 400


class PageLoadError(ResolverError):
    """The page payload could not be obtained."""

    error_type = "page_load_failed"
    status_code = 502
