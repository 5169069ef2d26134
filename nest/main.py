from __future__ import annotations

import logging
import os

from fastapi import FastAPI

try:
    from .routes import members, relationships, tree
except ImportError:  # pragma: no cover
    # Support running with CWD=nest (e.g., `python -m uvicorn main:app`).
    from routes import members, relationships, tree

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

app = FastAPI(title="Family Nest API", version="0.1.0")

app.include_router(members.router)
app.include_router(relationships.router)
app.include_router(tree.router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
