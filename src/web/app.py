"""
FastAPI application factory for Crowd Monitor.

Routes:
- /api/* -> REST API + alert WebSocket
- /assets/* -> Vite-built assets (JS, CSS bundles)
- everything else -> SPA index.html
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from runtime.context import RuntimeContext, build_runtime_context
from .routes import api
from .services.config_service import ConfigService
from .state import state


def create_app(ctx: Optional[RuntimeContext] = None) -> FastAPI:
    """
    Create the FastAPI app and wire routes/static assets.

    Args:
        ctx: Runtime context; built from the layered config files if omitted.
    """
    if ctx is None:
        ctx = build_runtime_context(ConfigService.load_effective_config())
    state.set_context(ctx)
    ctx.session.add_alert_listener(state.alerts.publish)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            await ctx.session.load_detector()
        except ImportError as e:
            logging.error(f"Detector unavailable, analysis disabled: {e}")
        yield
        await ctx.session.disconnect()
        logging.info("Crowd Monitor stopped")

    app = FastAPI(
        title="Crowd Monitor",
        version="0.1.0",
        description="Live crowd density monitoring for camera streams",
        lifespan=lifespan,
    )

    # CORS for development (Vite dev server)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api.router, prefix="/api")

    # Vite-built assets (frontend/dist/assets)
    dist_path = Path("frontend/dist")
    assets_path = dist_path / "assets"
    if assets_path.exists():
        app.mount("/assets", StaticFiles(directory=str(assets_path)), name="assets")

    @app.get("/{full_path:path}")
    async def spa_catch_all(request: Request, full_path: str):
        """
        Serves index.html for any route not matched by the API or assets,
        so the client-side router can handle navigation.
        """
        if full_path.startswith(("api/", "assets/")):
            return JSONResponse({"detail": "Not found"}, status_code=404)

        index_file = dist_path / "index.html"
        if index_file.exists():
            return FileResponse(index_file)

        return JSONResponse(
            {"detail": "Frontend not built. Run 'npm run build' in frontend/"},
            status_code=503,
        )

    return app
