"""Register the Slack slash command endpoint for ASGI/WSGI frameworks."""

# No postponed annotations: FastAPI reads the endpoint signature at runtime.
import threading
from typing import Any

from .handler import HandlerResult, SlashCommandHandler
from .logging_config import get_logger

LOGGER = get_logger(__name__)

DEFAULT_PATH = "/slack/commands/deploy"

__all__ = ["DEFAULT_PATH", "register_slash_command", "run_in_background"]


def _is_fastapi_app(app: Any) -> bool:
    return app.__class__.__module__.startswith("fastapi") and hasattr(app, "include_router")


def _is_flask_app(app: Any) -> bool:
    return app.__class__.__module__.startswith("flask") and hasattr(app, "register_blueprint")


def run_in_background(result: HandlerResult) -> threading.Thread | None:
    """Start ``result.deferred`` on a daemon thread without waiting for it."""

    if result.deferred is None:
        return None
    worker = threading.Thread(target=result.deferred, name="deploybot-deferred", daemon=True)
    worker.start()
    return worker


def register_slash_command(
    app: Any,
    *,
    handler: SlashCommandHandler | None = None,
    path: str = DEFAULT_PATH,
) -> Any:
    """Attach the ``/deploy`` slash command endpoint to ``app``.

    The helper detects whether ``app`` is a FastAPI or Flask instance at runtime
    so only the framework in use needs to be installed. ``handler`` defaults to
    one built from the process environment.
    """

    command_handler = handler or SlashCommandHandler.from_env()

    if _is_fastapi_app(app):
        from fastapi import APIRouter, BackgroundTasks, Request
        from fastapi.responses import JSONResponse
        from starlette.concurrency import run_in_threadpool

        router = APIRouter()

        @router.post(path)
        async def slack_deploy_command(
            request: Request, background_tasks: BackgroundTasks
        ) -> Any:  # pragma: no cover - framework wiring
            raw_body = await request.body()
            result = await run_in_threadpool(
                command_handler.handle, request.method, request.headers, raw_body
            )
            if result.deferred is not None:
                background_tasks.add_task(result.deferred)
            return JSONResponse(content=result.body, status_code=result.status)

        app.include_router(router)
        return router

    if _is_flask_app(app):
        from flask import Blueprint, jsonify, request

        blueprint = Blueprint("slack_deploy_command", __name__)

        @blueprint.route(path, methods=["POST"])
        def slack_deploy_command() -> Any:  # pragma: no cover - framework wiring
            raw_body = request.get_data(cache=False)
            result = command_handler.handle(request.method, request.headers, raw_body)
            run_in_background(result)
            response = jsonify(result.body)
            response.status_code = result.status
            return response

        app.register_blueprint(blueprint)
        return blueprint

    raise TypeError("Unsupported application type for Slack command registration")
