"""
Product Fact Resolver - FastAPI Application
Main entry point with REST API endpoints.
"""
import time
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from product_resolver.adapters.page_loader import PageLoader
from product_resolver.config import config
from product_resolver.exceptions import ResolverError, UnsupportedSiteError
from product_resolver.generators.canonical_mapper import CanonicalMapper
from product_resolver.layers.pipeline import ExtractionPipeline, ExtractionTrace
from product_resolver.layers.site_registry import site_registry
from product_resolver.models.product import RawPayload
from product_resolver.models.table import MappingResult
from product_resolver.utils.logger import get_logger, set_trace_id

VERSION = "1.0.0"
STARTED_AT = time.monotonic()


# Initialize FastAPI app
app = FastAPI(
    title="Product Fact Resolver",
    description="Reconciles product offer facts from JSON-LD and hydration state into one table",
    version=VERSION,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize layers
page_loader = PageLoader()
pipeline = ExtractionPipeline()
canonical_mapper = CanonicalMapper()

logger = get_logger("main")


# Request/Response models
class ExtractRequest(BaseModel):
    """Request model for extraction."""
    model_config = ConfigDict(populate_by_name=True)

    url: Optional[str] = None
    site_id: str = Field(default="auto", alias="siteId")
    html: Optional[str] = None  # page HTML captured by the caller
    state: Optional[Dict[str, Any]] = None  # pre-parsed hydration state
    fields: Optional[List[str]] = None  # canonical fields to map onto
    debug: bool = False


class ExtractResponse(BaseModel):
    """Response model for extraction."""
    status: str = "done"
    site_id: str
    headers: List[str]
    table: List[List[str]]
    duration_ms: int
    trace_id: str
    mapping: Optional[MappingResult] = None
    trace: Optional[Dict[str, Any]] = None


class MapRequest(BaseModel):
    """Request model for mapping an arbitrary raw table."""
    headers: List[Any] = Field(default_factory=list)
    rows: List[Any] = Field(default_factory=list)
    fields: Optional[List[str]] = None


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


@app.exception_handler(ResolverError)
async def resolver_error_handler(request: Request, exc: ResolverError):
    """Render resolver errors as structured JSON."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# API Routes
@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "ok": True,
        "status": "healthy",
        "version": VERSION,
        "uptime": round(time.monotonic() - STARTED_AT, 3),
    }


@app.get("/api/sites")
async def list_sites():
    """List the sites this service has a resolution policy for."""
    return [
        {"id": p.id, "name": p.name, "host_pattern": p.host_pattern.pattern}
        for p in site_registry.policies
    ]


@app.post("/api/extract", response_model=ExtractResponse, response_model_exclude_none=True)
async def extract(request: ExtractRequest):
    """
    Resolve a product page into the 8-column offer table.

    The page is taken from ``html``/``state`` when supplied; otherwise
    it is fetched from ``url``. When ``fields`` is given, the table is
    also mapped onto those canonical fields.
    """
    started = time.monotonic()
    trace_id = set_trace_id()

    if not request.url or not request.url.strip():
        return JSONResponse(
            status_code=400,
            content={"error": "Missing url", "error_type": "missing_url"},
        )

    logger.info(
        "extraction_request",
        url=request.url,
        site_id=request.site_id,
        html_supplied=request.html is not None,
        state_supplied=request.state is not None,
        trace_id=trace_id,
    )

    policy = site_registry.select(request.site_id, request.url)
    if policy is None:
        raise UnsupportedSiteError("No extractor for this site", url=request.url, site_id=request.site_id)

    try:
        if request.html is not None or request.state is not None:
            payload = RawPayload(url=request.url, html=request.html or "", state=request.state)
        else:
            payload = await page_loader.load(request.url)

        trace = ExtractionTrace() if request.debug else None
        table = pipeline.run(policy, payload, trace=trace)

        mapping = None
        if request.fields:
            mapping = canonical_mapper.map_to_canonical(table, request.fields)

        return ExtractResponse(
            site_id=policy.id,
            headers=table.headers,
            table=table.rows,
            duration_ms=_elapsed_ms(started),
            trace_id=trace_id,
            mapping=mapping,
            trace=trace.to_dict() if trace is not None else None,
        )

    except ResolverError:
        raise
    except Exception as e:
        logger.error("extraction_error", error=str(e), url=request.url)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Server error",
                "error_type": "internal",
                "detail": {"message": str(e)},
                "duration_ms": _elapsed_ms(started),
            },
        )


@app.post("/api/map", response_model=MappingResult)
async def map_table(request: MapRequest):
    """Map an arbitrary {headers, rows} table onto canonical fields."""
    set_trace_id()
    return canonical_mapper.map_to_canonical(
        {"headers": request.headers, "rows": request.rows},
        request.fields,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
