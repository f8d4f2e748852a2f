"""
nodescript HTTP compile service.

Start with:
    python -m nodescript.server.main

Or via uvicorn directly:
    uvicorn nodescript.server.main:app --port 3001 --reload
"""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nodescript.config import configure_logging, load_settings

# Load .env before the routes read their settings
configure_logging(load_settings())

from nodescript.server.routes.graph_routes import router  # noqa: E402

# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(title="nodescript API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "nodescript.server.main:app",
        host="0.0.0.0",
        port=3001,
        reload=True,
    )
