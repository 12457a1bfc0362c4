"""
FastAPI preview service.

Parses call notation posted by an editor and returns the call tree, the
PlantUML document, or the rendered image. Rendering runs in a worker
thread so the event loop keeps serving while PlantUML works.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from codesque import __version__
from codesque.config import OUTPUT_FORMATS, check_format, load_settings
from codesque.errors import ParseError, RenderError
from codesque.log import setup_logging
from codesque.nodes import to_json
from codesque.parser import parse_text
from codesque.plantuml import render_image
from codesque.render import render_plantuml, render_tree

logger = logging.getLogger(__name__)

settings = load_settings()
setup_logging(settings.log_level)

app = FastAPI(title="codesque — call notation preview")


@app.exception_handler(ParseError)
async def parse_error_handler(_request: Request, exc: ParseError):
    return JSONResponse(
        status_code=400,
        content={"detail": exc.message, "line": exc.line_number},
    )


@app.exception_handler(RenderError)
async def render_error_handler(_request: Request, exc: RenderError):
    logger.error("Render failed: %s", exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


async def _read_document(request: Request) -> tuple[str, dict, dict]:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="body must be JSON")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="body must be a JSON object")
    text = body.get("text")
    if not isinstance(text, str):
        raise HTTPException(status_code=400, detail="text is required")
    paths = body.get("paths") or {}
    if not isinstance(paths, dict):
        raise HTTPException(status_code=400, detail="paths must be an object")
    return text, paths, body


# ──────────────────────────────────────────────────────────────────
# REST API
# ──────────────────────────────────────────────────────────────────

@app.get("/api/health")
async def health():
    return {"status": "ok", "version": __version__}


@app.post("/api/parse")
async def parse_document(request: Request):
    text, paths, _body = await _read_document(request)
    roots = parse_text(text, paths=paths)
    return JSONResponse(content={"roots": to_json(roots), "tree": render_tree(roots)})


@app.post("/api/plantuml")
async def plantuml_document(request: Request):
    text, paths, _body = await _read_document(request)
    roots = parse_text(text, paths=paths)
    return PlainTextResponse(render_plantuml(roots))


@app.post("/api/render")
async def render_document(request: Request):
    text, paths, body = await _read_document(request)
    fmt = body.get("format") or settings.output_format
    if not isinstance(fmt, str):
        raise HTTPException(status_code=400, detail="format must be a string")
    try:
        fmt = check_format(fmt)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    puml = render_plantuml(parse_text(text, paths=paths))
    loop = asyncio.get_event_loop()
    data = await loop.run_in_executor(None, render_image, puml, settings, fmt)
    return Response(content=data, media_type=OUTPUT_FORMATS[fmt])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("codesque.app:app", host="127.0.0.1", port=8000, reload=True)
