from __future__ import annotations

import asyncio
import io
import logging
from pathlib import Path
from typing import Optional

from aiohttp import web

from tickusage.config import UsageConfig
from tickusage.store import DecodeError, iter_user_docs
from tickusage.usage import collect_usage, write_report

logger = logging.getLogger(__name__)

USERS_PATH_KEY = web.AppKey("users_path", Path)
CONFIG_KEY = web.AppKey("usage_config", UsageConfig)


def _error(msg: str) -> web.Response:
    logger.error(msg)
    return web.Response(status=500, text=msg + "\n", content_type="text/plain")


async def handle_usage(request: web.Request) -> web.Response:
    users_path = request.app[USERS_PATH_KEY]
    cfg = request.app[CONFIG_KEY]

    try:
        report = await asyncio.to_thread(collect_usage, iter_user_docs(users_path), cfg)
    except OSError as e:
        return _error(f"Failed reading users: {e}")
    except DecodeError as e:
        return _error(str(e))

    buf = io.StringIO()
    write_report(report, buf, cfg)
    logger.info("reported usage for %d users from %s", report.num_users, users_path)
    return web.Response(text=buf.getvalue(), content_type="text/plain")


def make_app(users_path: Path | str, cfg: Optional[UsageConfig] = None) -> web.Application:
    app = web.Application()
    app[USERS_PATH_KEY] = Path(users_path)
    app[CONFIG_KEY] = cfg or UsageConfig()
    app.router.add_get("/", handle_usage)
    return app


def serve(users_path: Path | str, host: str = "127.0.0.1", port: int = 8080,
          cfg: Optional[UsageConfig] = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    logger.info("serving usage for %s on http://%s:%d/", users_path, host, port)
    web.run_app(make_app(users_path, cfg), host=host, port=port, print=None)
