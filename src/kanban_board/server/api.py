"""FastAPI backend serving the board's REST surface."""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .container import ServerContainer
from .router import create_router


def create_app(
    state_dir: Path,
    enable_cors: bool = True,
    seed: bool = False,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        state_dir: Directory holding the backend's project and task files.
        enable_cors: Whether to enable CORS.
        seed: Load the sample board when the backend is empty.

    Returns:
        Configured FastAPI app.
    """
    app = FastAPI(
        title="Kanban Board API",
        description="Projects and tasks for the kanban board",
        version="1.0.0",
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    container = ServerContainer(state_dir)
    if seed:
        container.seed()
    app.state.container = container
    app.include_router(create_router(container))

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"name": "Kanban Board API", "version": "1.0.0", "status": "running"}

    return app
