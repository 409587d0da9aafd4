from __future__ import annotations

from datetime import datetime
from pathlib import Path

from flask import Flask, abort, current_app, send_from_directory

from app.cms.config import ServerOptions
from app.cms.constants import UPLOADS_PREFIX


def health():
    """Health check endpoint. Returns JSON, no DB access."""
    return {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "env": current_app.config.get("ENV"),
    }


def index():
    return "API is Running", 200, {"Content-Type": "text/plain; charset=utf-8"}


def register_routes(app: Flask, options: ServerOptions) -> None:
    uploads_root = Path(app.config["UPLOADS_DIR"])

    def uploads(filename: str):
        return send_from_directory(uploads_root, filename)

    app.add_url_rule(f"{UPLOADS_PREFIX}/<path:filename>", endpoint="uploads", view_func=uploads)

    if options.health_route:
        app.add_url_rule("/api/health", endpoint="health", view_func=health)
        app.add_url_rule("/healthz", endpoint="healthz", view_func=health)
    # The SPA owns "/" when it is served.
    if options.root_banner and not _serves_frontend(options):
        app.add_url_rule("/", endpoint="index", view_func=index)


def _serves_frontend(options: ServerOptions) -> bool:
    return options.is_production and options.frontend_dir is not None


def register_frontend(app: Flask, options: ServerOptions) -> None:
    """
    Serve the built frontend bundle with an SPA catch-all.

    Registered after every API blueprint. Unknown /api/* paths still get the JSON 404.
    """
    if not _serves_frontend(options):
        return
    root = Path(options.frontend_dir).resolve()  # type: ignore[arg-type]

    def spa(path: str = ""):
        if path == "api" or path.startswith("api/"):
            abort(404)
        if path and (root / path).is_file():
            return send_from_directory(root, path)
        return send_from_directory(root, "index.html")

    app.add_url_rule("/", endpoint="spa_index", view_func=spa)
    app.add_url_rule("/<path:path>", endpoint="spa", view_func=spa)
