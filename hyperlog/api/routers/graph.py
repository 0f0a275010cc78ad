"""Command and query endpoints for the graph.

Routes
------
POST   /roots          CreateRoot
GET    /roots          List available roots
POST   /sections       CreateSection
POST   /items          CreateItem
PUT    /items          UpdateItem (content update + rename by title)
POST   /items/toggle   ToggleItem
POST   /move           Move a node under another one
POST   /archive        Archive a node and its subtree
GET    /graph          Fetch the node at ?root=<name>&path=<a.b.c>

Commands answer ``204 No Content``.  Typed failures are turned into JSON
errors by the handler registered in :mod:`hyperlog.api.app`.
"""

from __future__ import annotations

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Query, Request, Response
from pydantic import AfterValidator, BaseModel, Field

from hyperlog import commands
from hyperlog.commands import Command
from hyperlog.models import ItemState, item_to_dict, parse_path

router = APIRouter()


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _check_segments(path: list[str]) -> list[str]:
    for segment in path:
        if not segment:
            raise ValueError("path cannot contain empty paths")
        if "." in segment:
            raise ValueError("path cannot contain `.`")
    return path


def _check_path(path: list[str]) -> list[str]:
    if not path:
        raise ValueError("path cannot be empty")
    return _check_segments(path)


RootName = Annotated[str, Field(min_length=1)]
NodePath = Annotated[list[str], AfterValidator(_check_path)]
DestPath = Annotated[list[str], AfterValidator(_check_segments)]


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class CreateRootRequest(BaseModel):
    root: RootName


class PathRequest(BaseModel):
    root: RootName
    path: NodePath


class ItemRequest(BaseModel):
    root: RootName
    path: NodePath
    title: str
    description: str = ""
    state: ItemState = ItemState.NOT_DONE


class MoveRequest(BaseModel):
    root: RootName
    src: NodePath
    dest: DestPath = []


class RootsResponse(BaseModel):
    roots: list[str]


class GraphResponse(BaseModel):
    item: Optional[dict[str, Any]]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _execute(request: Request, command: Command) -> Response:
    request.app.state.commander.execute(command)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/roots", status_code=204)
def create_root(body: CreateRootRequest, request: Request) -> Response:
    """Create a new, empty root."""
    return _execute(request, commands.CreateRoot(root=body.root))


@router.get("/roots", response_model=RootsResponse)
def get_available_roots(request: Request) -> dict[str, Any]:
    """Return every root name (an empty list when there are none)."""
    roots = request.app.state.querier.get_available_roots()
    return {"roots": roots or []}


@router.post("/sections", status_code=204)
def create_section(body: PathRequest, request: Request) -> Response:
    return _execute(request, commands.CreateSection(root=body.root, path=body.path))


@router.post("/items", status_code=204)
def create_item(body: ItemRequest, request: Request) -> Response:
    return _execute(
        request,
        commands.CreateItem(
            root=body.root,
            path=body.path,
            title=body.title,
            description=body.description,
            state=body.state,
        ),
    )


@router.put("/items", status_code=204)
def update_item(body: ItemRequest, request: Request) -> Response:
    """Replace an item's content; the item is re-keyed by its new title."""
    return _execute(
        request,
        commands.UpdateItem(
            root=body.root,
            path=body.path,
            title=body.title,
            description=body.description,
            state=body.state,
        ),
    )


@router.post("/items/toggle", status_code=204)
def toggle_item(body: PathRequest, request: Request) -> Response:
    return _execute(request, commands.ToggleItem(root=body.root, path=body.path))


@router.post("/move", status_code=204)
def move(body: MoveRequest, request: Request) -> Response:
    return _execute(request, commands.Move(root=body.root, src=body.src, dest=body.dest))


@router.post("/archive", status_code=204)
def archive(body: PathRequest, request: Request) -> Response:
    return _execute(request, commands.Archive(root=body.root, path=body.path))


@router.get("/graph", response_model=GraphResponse)
def get_graph(
    request: Request,
    root: Annotated[str, Query(min_length=1)],
    path: Optional[str] = None,
) -> dict[str, Any]:
    """Return the node at *path* under *root*, or ``{"item": null}``."""
    item = request.app.state.querier.get(root, parse_path(path))
    return {"item": item_to_dict(item) if item is not None else None}
