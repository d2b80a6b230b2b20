from typing import Any, Dict, Optional

import uvicorn

from paystream.core.config import Settings, settings as default_settings


def server_options(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Uvicorn options for the API.

    Open live streams never finish on their own, so uvicorn cancels them
    after SHUTDOWN_TIMEOUT_SECONDS; the lifespan handler then closes the
    broadcaster.

    Args:
        settings: Settings to read host, port and timeouts from

    Returns:
        Keyword arguments for uvicorn.run / uvicorn.Config
    """
    settings = settings or default_settings
    return {
        "host": settings.HOST,
        "port": settings.PORT,
        "reload": settings.RELOAD,
        "log_level": settings.LOG_LEVEL.lower(),
        "timeout_graceful_shutdown": settings.SHUTDOWN_TIMEOUT_SECONDS,
    }


def run():
    uvicorn.run("paystream.main:app", **server_options())
