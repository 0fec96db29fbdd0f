"""
FastAPI API layer for the TeachTree engine.

Provides REST endpoints for:
- Transcript loading
- Pattern listing and transcript excerpts
- Tree retrieval, expand/collapse and pattern selection
"""

from typing import Optional, Union

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import TeachTreeConfig
from .engine import TeachTreeEngine
from .exceptions import TeachTreeError
from .models import PatternDetail, PatternRecord
from .table import PatternTable
from .visibility import InMemoryViewStateStore
from .vocabulary import split_pattern

API_VERSION = "0.1.0"


# Pydantic models for API
class RawEventInput(BaseModel):
    """Input model for a single transcript event."""

    id: str
    label: str
    text: Optional[str] = ""


class TranscriptRequest(BaseModel):
    """Request to load a transcript."""

    events: list[RawEventInput]


class TranscriptResponse(BaseModel):
    """Response from transcript loading."""

    status: str
    event_count: int
    run_count: int
    pattern_count: int
    node_count: int


class PatternItem(BaseModel):
    """A mined pattern."""

    pattern: str
    sequence: list[str]
    length: int
    count: int
    avg_score: Optional[float] = None


class PatternsResponse(BaseModel):
    """Response for the pattern listing."""

    patterns: list[PatternItem]
    total: int
    page: int
    total_pages: int
    sort_field: str
    sort_order: str


class PatternDetailItem(BaseModel):
    """One matched run in a transcript excerpt."""

    source_id: str
    label: str
    abbr: str
    text: str
    start_time: int
    end_time: int


class DetailsResponse(BaseModel):
    """Transcript excerpt for a pattern."""

    pattern: list[str]
    details: list[PatternDetailItem]


class SelectRequest(BaseModel):
    """Request to select (highlight) a pattern."""

    pattern: Union[list[str], str] = Field(..., description="Abbreviations or a pattern key")


class SelectResponse(BaseModel):
    """Response from pattern selection."""

    highlight_path: list[str]
    node_ids: list[str]
    visible_count: int


class ToggleResponse(BaseModel):
    """Response from expand/collapse."""

    node_id: str
    action: str
    visible_count: int


def _pattern_item(record: PatternRecord, separator: str) -> PatternItem:
    return PatternItem(
        pattern=record.key(separator),
        sequence=list(record.pattern),
        length=record.length,
        count=record.count,
        avg_score=round(record.avg_score, 4) if record.avg_score is not None else None,
    )


def _detail_item(detail: PatternDetail) -> PatternDetailItem:
    return PatternDetailItem(**detail.to_dict())


def _patterns_response(table: PatternTable, separator: str) -> PatternsResponse:
    return PatternsResponse(
        patterns=[_pattern_item(r, separator) for r in table.page_rows()],
        total=len(table.rows),
        page=table.page,
        total_pages=table.total_pages,
        sort_field=table.sort_field,
        sort_order=table.sort_order,
    )


# FastAPI app factory
def create_app(
    config: Optional[TeachTreeConfig] = None,
    engine: Optional[TeachTreeEngine] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Configuration for the engine
        engine: Pre-built engine (a fresh one is created if None)

    Returns:
        Configured FastAPI app
    """
    config = config or TeachTreeConfig()
    engine = engine or TeachTreeEngine(config, store=InMemoryViewStateStore())
    separator = engine.config.pattern_separator

    app = FastAPI(
        title="TeachTree API",
        description="Behavior-sequence pattern mining and interaction tree exploration",
        version=API_VERSION,
    )
    app.state.engine = engine

    @app.exception_handler(TeachTreeError)
    async def teach_tree_error_handler(request: Request, exc: TeachTreeError):
        return JSONResponse(
            status_code=400,
            content={"detail": exc.message, "details": exc.details},
        )

    # Health check
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": API_VERSION}

    # =========================================================================
    # Transcript
    # =========================================================================

    @app.post("/transcript", response_model=TranscriptResponse)
    async def load_transcript(request: TranscriptRequest):
        """
        Load a transcript and rebuild patterns and tree.

        Visible nodes that still exist after the rebuild stay visible.
        """
        tree = engine.load_events([e.model_dump() for e in request.events])
        return TranscriptResponse(
            status="loaded",
            event_count=len(request.events),
            run_count=len(engine.runs),
            pattern_count=len(engine.patterns),
            node_count=len(tree) - 1,
        )

    # =========================================================================
    # Patterns
    # =========================================================================

    @app.get("/patterns", response_model=PatternsResponse)
    async def list_patterns(
        sort_field: str = Query("length", description="length, count or avg_score"),
        sort_order: str = Query("desc", description="asc or desc"),
        page: int = Query(1, ge=1),
    ):
        """
        List root-to-leaf patterns, sorted and paginated.
        """
        table = engine.table(sort_field=sort_field, sort_order=sort_order, page=page)
        return _patterns_response(table, separator)

    @app.get("/listing", response_model=PatternsResponse)
    async def get_listing():
        """
        The session listing at its current sort and page.
        """
        return _patterns_response(engine.listing(), separator)

    @app.post("/listing/sort/{sort_field}", response_model=PatternsResponse)
    async def sort_listing(sort_field: str):
        """
        Sort the session listing; sorting the active field again flips the order.
        """
        return _patterns_response(engine.sort_listing(sort_field), separator)

    @app.post("/listing/page/{action}", response_model=PatternsResponse)
    async def navigate_listing(action: str):
        """
        Move the session listing to the first, previous, next or last page.
        """
        return _patterns_response(engine.navigate_listing(action), separator)

    @app.get("/patterns/all")
    async def list_all_patterns(limit: int = Query(100, ge=1, le=10000)):
        """
        Every mined pattern (not only root-to-leaf chains).
        """
        patterns = engine.patterns
        return {
            "patterns": [_pattern_item(r, separator).model_dump() for r in patterns[:limit]],
            "total": len(patterns),
        }

    @app.get("/patterns/details", response_model=DetailsResponse)
    async def pattern_details(pattern: str = Query(..., description="Pattern key")):
        """
        Transcript excerpt for the first occurrence of a pattern.
        """
        details = engine.pattern_details(pattern)
        return DetailsResponse(
            pattern=list(split_pattern(pattern, separator)),
            details=[_detail_item(d) for d in details],
        )

    # =========================================================================
    # Tree
    # =========================================================================

    @app.get("/tree")
    async def get_tree():
        """
        The full interaction tree.
        """
        return {"tree": engine.tree.to_dict()}

    @app.get("/tree/visible")
    async def get_visible_tree():
        """
        The subtree a renderer should draw, with highlight information.
        """
        return engine.render_payload()

    @app.post("/tree/nodes/{node_id}/toggle", response_model=ToggleResponse)
    async def toggle_node(node_id: str):
        """
        Expand or collapse a node.
        """
        action = engine.toggle_node(node_id)
        if action is None:
            raise HTTPException(status_code=404, detail="Node not found")
        return ToggleResponse(
            node_id=node_id,
            action=action,
            visible_count=len(engine.visible_ids),
        )

    @app.get("/tree/nodes/{node_id}/details", response_model=DetailsResponse)
    async def leaf_details(node_id: str):
        """
        Transcript excerpt for the chain ending at a leaf node.
        """
        excerpt = engine.leaf_excerpt(node_id)
        if excerpt is None:
            raise HTTPException(status_code=404, detail="Node not found")
        chain, details = excerpt
        return DetailsResponse(
            pattern=list(chain),
            details=[_detail_item(d) for d in details],
        )

    @app.post("/tree/select", response_model=SelectResponse)
    async def select_pattern(request: SelectRequest):
        """
        Highlight a pattern and reveal its path in the tree.
        """
        node_ids = engine.select_pattern(request.pattern)
        return SelectResponse(
            highlight_path=list(engine.highlight_path or ()),
            node_ids=node_ids,
            visible_count=len(engine.visible_ids),
        )

    @app.delete("/tree/select")
    async def clear_selection():
        """
        Remove the current highlight.
        """
        engine.clear_selection()
        return {"highlight_path": None}

    # =========================================================================
    # View state
    # =========================================================================

    @app.post("/view/{key}/save")
    async def save_view(key: str):
        """
        Snapshot the current view state.
        """
        state = engine.save_view(key)
        if state is None:
            raise HTTPException(status_code=409, detail="No view state store configured")
        return state.to_dict()

    @app.post("/view/{key}/load")
    async def load_view(key: str):
        """
        Restore a saved view state.
        """
        if not engine.load_view(key):
            raise HTTPException(status_code=404, detail="View state not found")
        return {"visible_ids": sorted(engine.visible_ids)}

    @app.get("/stats")
    async def get_stats():
        """
        Summary counts for the loaded transcript.
        """
        return engine.get_stats()

    return app


# Create default app instance
app = create_app()
