import json
import time
from typing import Any


def now_ms() -> int:
    """
    Current wall-clock time in milliseconds since the epoch.

    Returns:
        Integer timestamp, the same unit the frontend's Date uses
    """
    return int(time.time() * 1000)


def format_sse(event: str, data: Any) -> str:
    """
    Serialize one Server-Sent Events frame.

    Format: ``event: <name>\\ndata: <json>\\n\\n``

    Args:
        event: Event name dispatched on the client's EventSource
        data: JSON-serializable payload

    Returns:
        Frame text ready to be written to the stream
    """
    payload = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    return f"event: {event}\ndata: {payload}\n\n"


# Comment frame; EventSource ignores it, proxies see traffic
SSE_PING = ": ping\n\n"
