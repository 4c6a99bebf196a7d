"""
Dashboard HTTP service.

Exposes the bot's files for external editing:

- ``GET  /api/settings``  current ``settings.json``
- ``POST /api/settings``  replace ``settings.json`` (validated first)
- ``GET  /api/dms``       the DM log as a JSON array
- ``/``                   static dashboard pages from the configured directory

The bot reads ``settings.json`` once at startup, so saved settings take
effect on the next restart.
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
import tempfile
from pathlib import Path
from typing import Any

from aiohttp import web
from dotenv import load_dotenv

from concierge.configuration.app_configuration import BASE_DIR, AppConfig
from concierge.configuration.bot_settings import Settings, SettingsError
from concierge.util.logger import get_logger, handle_exception

logger = get_logger("dashboard")

SETTINGS_PATH_KEY = web.AppKey("settings_path", Path)
DM_LOG_PATH_KEY = web.AppKey("dm_log_path", Path)


def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _write_json_atomic(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
            json.dump(data, tmp_file, indent=2, ensure_ascii=False)
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise


# --------------------------
# Handlers
# --------------------------
async def handle_get_settings(request: web.Request) -> web.Response:
    path = request.app[SETTINGS_PATH_KEY]
    try:
        data = await asyncio.to_thread(_read_json, path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.error("Error reading settings file %s: %s", path, exc)
        return web.json_response({"error": "Failed to read settings."}, status=500)
    return web.json_response(data)


async def handle_post_settings(request: web.Request) -> web.Response:
    path = request.app[SETTINGS_PATH_KEY]
    try:
        new_settings = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return web.json_response({"error": "Request body must be JSON."}, status=400)

    # Refuse anything the bot would fail to load at startup
    try:
        Settings.from_mapping(new_settings)
    except SettingsError as exc:
        return web.json_response({"error": f"Invalid settings: {exc}"}, status=400)

    try:
        await asyncio.to_thread(_write_json_atomic, path, new_settings)
    except OSError as exc:
        logger.error("Error writing settings file %s: %s", path, exc)
        return web.json_response({"error": "Failed to save settings."}, status=500)

    logger.info("Settings updated successfully.")
    return web.json_response({"success": True, "message": "Settings updated successfully."})


async def handle_get_dms(request: web.Request) -> web.Response:
    path = request.app[DM_LOG_PATH_KEY]
    try:
        data = await asyncio.to_thread(_read_json, path)
    except FileNotFoundError:
        return web.json_response([])
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.error("Error reading DM log file %s: %s", path, exc)
        return web.json_response({"error": "Failed to read DM log."}, status=500)
    return web.json_response(data)


def create_app(settings_path: Path, dm_log_path: Path, static_dir: Path | None = None) -> web.Application:
    """Build the dashboard application.

    Args:
        settings_path: Location of ``settings.json``.
        dm_log_path: Location of the DM log.
        static_dir: Optional directory of static dashboard files served at ``/``.
    """
    app = web.Application()
    app[SETTINGS_PATH_KEY] = Path(settings_path)
    app[DM_LOG_PATH_KEY] = Path(dm_log_path)

    app.router.add_get("/api/settings", handle_get_settings)
    app.router.add_post("/api/settings", handle_post_settings)
    app.router.add_get("/api/dms", handle_get_dms)

    if static_dir is not None and Path(static_dir).is_dir():
        index_path = Path(static_dir) / "index.html"

        async def handle_index(request: web.Request) -> web.StreamResponse:
            if not index_path.is_file():
                raise web.HTTPNotFound()
            return web.FileResponse(index_path)

        app.router.add_get("/", handle_index)
        app.router.add_static("/", path=static_dir, name="static")
    elif static_dir is not None:
        logger.warning("Static directory %s not found; serving the API only", static_dir)

    return app


class DashboardServer:
    """Runs the dashboard application on a host and port."""

    def __init__(self, app: web.Application, host: str = "127.0.0.1", port: int = 3000):
        self.app = app
        self.host = host
        self.port = port
        self.runner: web.AppRunner | None = None

    async def start(self) -> None:
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, self.host, self.port)
        await site.start()
        logger.info(f"Dashboard running at http://{self.host}:{self.port}")

    async def stop(self) -> None:
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            logger.info("Dashboard stopped")


async def run_dashboard(app_config: AppConfig) -> None:
    app = create_app(
        app_config.resolve_path(app_config.settings_file),
        app_config.resolve_path(app_config.dm_log_file),
        app_config.resolve_path(app_config.dashboard_static_dir),
    )
    server = DashboardServer(app, app_config.dashboard_host, app_config.dashboard_port)
    await server.start()
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()


def main() -> int:
    """Entrypoint for ``concierge-dashboard``."""
    sys.excepthook = handle_exception
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    app_config = AppConfig()
    try:
        asyncio.run(run_dashboard(app_config))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
