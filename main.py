"""
Main entrypoint: HiveWatch engine + FastAPI server on one event loop.

The engine starts in the app lifespan and stops on shutdown, so SIGINT/SIGTERM
handled by uvicorn stops polling as well.

Env: HIVE_NODES, HIVE_USERNAME, *_INTERVAL_SEC, API_HOST, API_PORT, LOG_LEVEL, LOG_FORMAT.

Engine only (no API): python -m backend_hivewatch.agent_worker.runtime
"""

import os

# Configure structured JSON logging before other imports that may log
from backend_hivewatch.hivewatch_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Load settings and run the FastAPI app (engine included) under uvicorn."""
    import uvicorn

    from backend_hivewatch.api_server.server import create_app
    from backend_hivewatch.config import get_settings

    settings = get_settings()
    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        nodes=settings.hive_nodes,
        tracked_account=settings.hive_username,
    )
    uvicorn.run(
        create_app(),
        host=settings.api_host,
        port=settings.api_port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
