"""
Graph REST routes — compile graph snapshots over HTTP.

All routes are mounted under /api by main.py.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from nodescript.compiler import CompileError, compile_graph
from nodescript.compiler.deserialiser import from_dict
from nodescript.compiler.schema import SchemaError
from nodescript.compiler.templates import LANGUAGE_REGISTRY
from nodescript.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter()

settings = Settings.from_env()


# ── GET /languages ────────────────────────────────────────────────────────────

@router.get("/languages")
async def list_languages() -> List[str]:
    return sorted(LANGUAGE_REGISTRY)


# ── POST /compile ─────────────────────────────────────────────────────────────

class CompileBody(BaseModel):
    graph: Dict[str, Any]
    language: Optional[str] = None
    debug_info: Optional[bool] = None
    strict: Optional[bool] = None
    library: List[Dict[str, Any]] = Field(default_factory=list)


@router.post("/compile")
async def compile_snapshot(body: CompileBody) -> Dict[str, Any]:
    graph = dict(body.graph)
    if body.library:
        graph["library"] = list(graph.get("library", [])) + body.library

    try:
        snapshot = from_dict(graph)
        compilation = compile_graph(
            snapshot.nodes,
            snapshot.connections,
            debug_info=settings.debug_info if body.debug_info is None else body.debug_info,
            language=body.language or settings.language,
            strict=settings.strict if body.strict is None else body.strict,
            max_path_length=settings.max_path_length,
        )
    except SchemaError as exc:
        raise HTTPException(status_code=400, detail=f"Schema validation failed: {exc}")
    except CompileError as exc:
        logger.warning(f"Compilation of '{snapshot.name}' failed: {exc}")
        raise HTTPException(status_code=400, detail=f"Compilation failed: {exc}")

    result = compilation.to_dict()
    result["graph_name"] = snapshot.name
    return result
