"""
FastAPI REST API for saved game records.

Records are serialized move trees stored in the draft store. Every tree
sent to the API is validated by deserializing it before it is stored.

Usage:
    # Start the server
    uvicorn go_record.api:app --host 127.0.0.1 --port 8000 --reload

    # Or run directly
    python -m go_record.api
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .board import Color, Stone, MAX_BOARD_SIZE, MIN_BOARD_SIZE
from .capture import CaptureService
from .config import AppConfig, load_config, setup_logging
from .drafts import Draft, DraftStore
from .errors import MalformedTreeError

logger = logging.getLogger(__name__)


# ============================================================================
# Pydantic Models (OpenAPI Schema)
# ============================================================================

class PointModel(BaseModel):
    x: int
    y: int


class GroupModel(BaseModel):
    """A captured group as stored on a move."""
    stones: List[PointModel]
    liberties: List[PointModel]
    color: int = Field(..., ge=0, le=2, description="0 = empty, 1 = black, 2 = white")


class SerializedMoveNodeModel(BaseModel):
    id: str
    x: int
    y: int
    color: int = Field(..., ge=0, le=2)
    currentMoveNumber: int
    capturedGroups: List[GroupModel]
    parentId: Optional[str]
    childrenIds: List[str]


class PointerModel(BaseModel):
    currentNodeId: str
    currentMoveNumber: int
    totalMoveNumber: int


class GameTreeModel(BaseModel):
    """Serialized move tree (the transport format of MoveTree.serialize)."""
    nodes: Dict[str, SerializedMoveNodeModel]
    rootNodeId: str
    pointer: PointerModel

    class Config:
        json_schema_extra = {
            "example": {
                "nodes": {
                    "0": {
                        "id": "0", "x": -1, "y": -1, "color": 0,
                        "currentMoveNumber": 0, "capturedGroups": [],
                        "parentId": None, "childrenIds": ["1"],
                    },
                    "1": {
                        "id": "1", "x": 3, "y": 3, "color": 1,
                        "currentMoveNumber": 1, "capturedGroups": [],
                        "parentId": "0", "childrenIds": [],
                    },
                },
                "rootNodeId": "0",
                "pointer": {"currentNodeId": "1", "currentMoveNumber": 1, "totalMoveNumber": 1},
            }
        }


class RecordInput(BaseModel):
    """Request body for creating or updating a record."""
    title: str = Field(..., min_length=1, max_length=200, description="Record title")
    gameTree: GameTreeModel


class RecordListItem(BaseModel):
    recordId: str
    title: str
    createdAt: str
    updatedAt: str


class RecordDetail(RecordListItem):
    gameTree: Dict[str, Any]


class ListRecordsResponse(BaseModel):
    records: List[RecordListItem]
    nextCursor: Optional[str] = Field(None, description="Opaque cursor for the next page")


class BoardResponse(BaseModel):
    """Board projected at a record's current node."""
    recordId: str
    boardSize: int
    currentNodeId: str
    currentMoveNumber: int
    nextColor: int
    board: List[List[int]] = Field(..., description="Rows of colors, indexed [y][x]")


class MoveCheckRequest(BaseModel):
    """Request body for /moves/check."""
    board: List[List[int]] = Field(..., description="Rows of colors, indexed [y][x]")
    x: Optional[int] = None
    y: Optional[int] = None
    color: int = Field(..., ge=1, le=2, description="1 = black, 2 = white")

    class Config:
        json_schema_extra = {
            "example": {
                "board": [[0, 1, 0], [1, 0, 0], [0, 0, 0]],
                "x": 0,
                "y": 0,
                "color": 2,
            }
        }


class MoveCheckResponse(BaseModel):
    legal: bool
    suicide: bool
    capturedGroups: List[GroupModel]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    record_count: int = Field(..., description="Number of stored records")


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str = Field(..., description="Error message")


# ============================================================================
# Application State
# ============================================================================

class AppState:
    """Application state container."""
    store: Optional[DraftStore] = None
    config: Optional[AppConfig] = None


state = AppState()


def _get_store() -> DraftStore:
    if state.store is None:
        raise HTTPException(status_code=500, detail="Record store not initialized")
    return state.store


def _page_limits() -> tuple:
    if state.config is None:
        return 20, 100
    return state.config.api.page_size, state.config.api.max_page_size


def _list_item(draft) -> RecordListItem:
    return RecordListItem(
        recordId=draft.id,
        title=draft.title,
        createdAt=draft.created_at,
        updatedAt=draft.updated_at,
    )


def _detail(draft: Draft) -> RecordDetail:
    return RecordDetail(
        recordId=draft.id,
        title=draft.title,
        createdAt=draft.created_at,
        updatedAt=draft.updated_at,
        gameTree=draft.game_tree_dict(),
    )


# ============================================================================
# Lifespan Management
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup/shutdown)."""
    state.config = load_config()
    setup_logging(state.config)
    state.store = DraftStore(config=state.config)
    logger.info("Records API started. Store has %d records.", state.store.count())

    yield

    logger.info("Records API shut down.")


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title="Go Game Record API",
    description="""
REST API for saved Go game records.

## Features
- Create, list, read, update and delete game records
- Records hold a full branching move tree and its current position
- Board projection at the stored position
- Move legality / capture checks

Trees use the MoveTree serialization format; malformed trees are rejected
with 400.
    """,
    version="1.0.0",
    lifespan=lifespan,
    responses={
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Endpoints
# ============================================================================

@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["System"],
    summary="Health check",
)
async def health_check():
    """Return service health status."""
    return HealthResponse(
        status="ok",
        record_count=state.store.count() if state.store else 0,
    )


@app.get(
    "/records",
    response_model=ListRecordsResponse,
    tags=["Records"],
    summary="List records",
    description="List records, most recently updated first.",
)
async def list_records(
    limit: Optional[int] = Query(None, ge=1),
    cursor: Optional[str] = Query(None, description="Cursor from a previous page"),
):
    store = _get_store()
    default_size, max_size = _page_limits()
    page_size = min(limit or default_size, max_size)

    offset = 0
    if cursor:
        try:
            offset = int(cursor)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid cursor: {cursor}")
        if offset < 0:
            raise HTTPException(status_code=400, detail=f"Invalid cursor: {cursor}")

    try:
        # One extra row tells whether another page exists.
        drafts = store.list_drafts(limit=page_size + 1, offset=offset)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Listing failed: {str(e)}")

    next_cursor = str(offset + page_size) if len(drafts) > page_size else None
    return ListRecordsResponse(
        records=[_list_item(d) for d in drafts[:page_size]],
        nextCursor=next_cursor,
    )


@app.post(
    "/records",
    response_model=RecordListItem,
    status_code=201,
    tags=["Records"],
    summary="Create a record",
    responses={400: {"model": ErrorResponse, "description": "Malformed game tree"}},
)
async def create_record(request: RecordInput):
    store = _get_store()
    try:
        record_id = store.save_game_tree(request.gameTree.model_dump_json(), request.title)
    except MalformedTreeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Save failed: {str(e)}")

    return _list_item(store.get_draft(record_id))


@app.get(
    "/records/{record_id}",
    response_model=RecordDetail,
    tags=["Records"],
    summary="Get a record",
    responses={404: {"model": ErrorResponse, "description": "Record not found"}},
)
async def get_record(record_id: str):
    draft = _get_store().get_draft(record_id)
    if draft is None:
        raise HTTPException(status_code=404, detail=f"Record {record_id} not found")
    return _detail(draft)


@app.put(
    "/records/{record_id}",
    response_model=RecordDetail,
    tags=["Records"],
    summary="Update a record",
    responses={
        400: {"model": ErrorResponse, "description": "Malformed game tree"},
        404: {"model": ErrorResponse, "description": "Record not found"},
    },
)
async def update_record(record_id: str, request: RecordInput):
    store = _get_store()
    if store.get_draft(record_id) is None:
        raise HTTPException(status_code=404, detail=f"Record {record_id} not found")

    try:
        store.save_game_tree(request.gameTree.model_dump_json(), request.title, record_id)
    except MalformedTreeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Save failed: {str(e)}")

    return _detail(store.get_draft(record_id))


@app.delete(
    "/records/{record_id}",
    status_code=204,
    tags=["Records"],
    summary="Delete a record",
    responses={404: {"model": ErrorResponse, "description": "Record not found"}},
)
async def delete_record(record_id: str):
    if not _get_store().delete_draft(record_id):
        raise HTTPException(status_code=404, detail=f"Record {record_id} not found")
    return Response(status_code=204)


@app.get(
    "/records/{record_id}/board",
    response_model=BoardResponse,
    tags=["Records"],
    summary="Board at the record's current position",
    responses={404: {"model": ErrorResponse, "description": "Record not found"}},
)
async def get_record_board(
    record_id: str,
    board_size: Optional[int] = Query(None, ge=MIN_BOARD_SIZE, le=MAX_BOARD_SIZE),
):
    draft = _get_store().get_draft(record_id)
    if draft is None:
        raise HTTPException(status_code=404, detail=f"Record {record_id} not found")

    size = board_size or (state.config.board.size if state.config else 19)
    try:
        tree = draft.load_tree()
        board = tree.get_board_state(size)
    except MalformedTreeError as e:
        raise HTTPException(status_code=500, detail=f"Stored record is corrupt: {str(e)}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return BoardResponse(
        recordId=draft.id,
        boardSize=size,
        currentNodeId=tree.pointer.current_node.id,
        currentMoveNumber=tree.pointer.current_move_number,
        nextColor=int(tree.next_color),
        board=[[int(c) for c in row] for row in board],
    )


@app.post(
    "/moves/check",
    response_model=MoveCheckResponse,
    tags=["Rules"],
    summary="Check a candidate move",
    description="Report legality, suicide and captures for a stone on a board.",
    responses={400: {"model": ErrorResponse, "description": "Invalid board"}},
)
async def check_move(request: MoveCheckRequest):
    size = len(request.board)
    if not (MIN_BOARD_SIZE <= size <= MAX_BOARD_SIZE) or any(len(row) != size for row in request.board):
        raise HTTPException(status_code=400, detail="Board must be a square grid of supported size")

    try:
        board = [[Color(c) for c in row] for row in request.board]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    service = CaptureService(size)
    stone = Stone(request.x, request.y, Color(request.color))
    captured = service.get_captured_groups(stone, board)

    return MoveCheckResponse(
        legal=service.is_legal_move(stone, board),
        suicide=service.is_suicide(stone, board),
        capturedGroups=[g.to_dict() for g in captured],
    )


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    config = load_config()
    uvicorn.run(
        "go_record.api:app",
        host=config.api.host,
        port=config.api.port,
        reload=True,
    )
