import os
import traceback
from enum import Enum

from dotenv import load_dotenv
from flask import Flask, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from app.cms.auth import bp as auth_bp, load_current_user
from app.cms.config import ServerOptions, load_config, options_from_settings
from app.cms.constants import API_PREFIXES
from app.cms.db import connect_db, init_db, teardown_db_session
from app.cms.errors import ServiceError
from app.cms.modules.complaint_types.api import bp as complaint_types_bp
from app.cms.modules.complaints.api import bp as complaints_bp
from app.cms.modules.departments.api import bp as departments_bp
from app.cms.modules.feedback.api import bp as feedback_bp
from app.cms.modules.notifications.api import bp as notifications_bp
from app.cms.modules.organizations.api import bp as organizations_bp
from app.cms.modules.users.api import bp as users_bp
from app.cms.modules.workflows.api import bp as workflows_bp
from app.cms.routes import register_frontend, register_routes

BLUEPRINTS = {
    "organizations": organizations_bp,
    "auth": auth_bp,
    "users": users_bp,
    "departments": departments_bp,
    "complaint_types": complaint_types_bp,
    "complaints": complaints_bp,
    "workflows": workflows_bp,
    "notifications": notifications_bp,
    "feedback": feedback_bp,
}


class ServerState(str, Enum):
    INIT = "init"
    ROUTES_MOUNTED = "routes_mounted"
    LISTENING = "listening"
    HANDED_TO_HOST = "handed_to_host"


def server_state(app: Flask) -> ServerState:
    return app.extensions["cms_state"]


def create_app(options: ServerOptions | None = None) -> Flask:
    load_dotenv()
    options = options or options_from_settings()
    app = Flask(__name__, static_folder=None)
    app.config.from_mapping(load_config())
    app.config["ENV"] = options.env
    app.config["UPLOADS_DIR"] = str(options.uploads_dir.resolve())
    app.config["MAX_CONTENT_LENGTH"] = options.body_limit_bytes
    app.extensions["cms_options"] = options
    app.extensions["cms_state"] = ServerState.INIT

    # Production guardrails (fail fast with clear logs)
    if options.is_production:
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    cors_kwargs: dict[str, object] = {
        "origins": options.cors_origin or "*",
        "supports_credentials": True,
    }
    if options.cors_methods:
        cors_kwargs["methods"] = list(options.cors_methods)
    if options.cors_headers:
        cors_kwargs["allow_headers"] = list(options.cors_headers)
    CORS(app, **cors_kwargs)

    init_db(app)
    connect_db(app, wait=options.wait_for_db)

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    register_routes(app, options)
    # Order matters: complaint types are mounted ahead of complaints.
    for name, prefix in API_PREFIXES:
        app.register_blueprint(BLUEPRINTS[name], url_prefix=prefix)
    register_frontend(app, options)

    app.before_request(load_current_user)
    app.teardown_appcontext(teardown_db_session)

    if options.json_errors:
        _register_error_handlers(app)

    app.extensions["cms_state"] = ServerState.ROUTES_MOUNTED
    app.logger.info("create_app() complete; app ready to serve (env=%s)", options.env)
    return app


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ServiceError)
    def _err_service(e: ServiceError):  # type: ignore[no-redef]
        return {"msg": e.msg}, e.status

    @app.errorhandler(413)
    def _err_413(e):  # type: ignore[no-redef]
        return {"message": "Request body too large"}, 413

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):  # type: ignore[no-redef]
        return {"message": e.description or e.name}, e.code or 500

    @app.errorhandler(Exception)
    def _err_500(e: Exception):  # type: ignore[no-redef]
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        body: dict[str, object] = {"message": str(e) or "Something went wrong!"}
        if app.config.get("ENV") == "development":
            body["error"] = traceback.format_exc()
        return body, getattr(e, "status", None) or 500

    # Registered last: anything no route matched.
    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return {"message": "Route not found"}, 404


def serve(app: Flask, *, host: str = "0.0.0.0", port: int | None = None) -> Flask:
    """
    Bind the development server, or leave the app to the production WSGI host.
    """
    if app.extensions["cms_options"].is_production:
        app.extensions["cms_state"] = ServerState.HANDED_TO_HOST
        app.logger.info("Production mode: app handed to the WSGI host")
        return app
    port = port or int(app.config.get("PORT") or 5000)
    app.extensions["cms_state"] = ServerState.LISTENING
    app.logger.info("Server running on port %s", port)
    app.run(host=host, port=port)
    return app
