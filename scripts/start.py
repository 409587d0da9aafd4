#!/usr/bin/env python3
"""
Startup script.

Production: creates tables and seeds workflow templates, then execs gunicorn on app.wsgi:app.
Anywhere else: runs the Werkzeug development server through serve().

Usage:
    python scripts/start.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _port() -> str:
    port = os.environ.get("PORT", "").strip()
    if not port:
        print("WARNING: PORT not set, using default 5000", flush=True)
        port = "5000"
    try:
        port_int = int(port)
        if port_int < 1 or port_int > 65535:
            raise ValueError("Port out of range")
    except ValueError:
        print(f"ERROR: Invalid PORT value '{port}'. Must be integer 1-65535.", flush=True)
        sys.exit(1)
    return port


def main() -> None:
    from app.cms.config import load_settings

    port = _port()
    settings = load_settings()

    if settings.env not in ("prod", "production"):
        from app.cms import create_app, serve

        serve(create_app(), port=int(port))
        return

    print("=== Initializing database ===", flush=True)
    from scripts.init_db import init_db

    try:
        init_db(database_url=settings.database_url)
    except Exception as e:
        print(f"Database init failed: {e}", flush=True)
        sys.exit(1)

    print(f"=== Starting gunicorn on 0.0.0.0:{port} ===", flush=True)
    # exec so gunicorn becomes PID 1 and receives signals directly
    os.execvp(
        "gunicorn",
        [
            "gunicorn",
            "app.wsgi:app",
            "--bind", f"0.0.0.0:{port}",
            "--workers", "2",
            "--timeout", "60",
            "--preload",
            "--access-logfile", "-",
            "--error-logfile", "-",
        ],
    )


if __name__ == "__main__":
    main()
