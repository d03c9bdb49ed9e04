"""FastMCP server bootstrap for the worklog tracker."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from fastmcp import Context, FastMCP

from . import __version__
from .config import WorklogSettings, get_settings
from .dispatcher import WorklogDispatcher
from .storage import SessionStore
from .tools import register_tools


def configure_logging(level: str) -> None:
    """Configure root logging for the worklog server."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def build_status(
    store: SessionStore,
    settings: WorklogSettings,
    *,
    request_id: Any = None,
) -> dict[str, Any]:
    """Summarize the store for the status resource."""

    records = store.records()
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "server_version": __version__,
        "log_level": settings.log_level,
        "timezone": settings.timezone,
        "admin_role": settings.admin_role,
        "storage": {
            "path": str(store.path),
            "dirty": store.dirty,
            "users": len(store.users()),
            "records": len(records),
            "state_counts": store.state_counts(),
            "open_breaks_after_end": sum(
                1 for _, _, record in records if record.end is not None and record.open_break is not None
            ),
        },
        "request_id": request_id,
    }


def create_server(
    settings: Optional[WorklogSettings] = None,
    store: SessionStore | None = None,
    *,
    clock: Callable[[], datetime] | None = None,
) -> FastMCP:
    """Instantiate the FastMCP server with the worklog tools and status resource."""

    settings = settings or get_settings()
    store = store or SessionStore(settings.data_file)
    dispatcher = WorklogDispatcher(store, settings, clock=clock)

    server = FastMCP(
        name="Worklog MCP",
        version=__version__,
        instructions=(
            "Tracks each user's daily work session: start, breaks and end. Call the "
            "session tools on user interaction and render the returned records; admin "
            "tools require the caller's role list."
        ),
    )

    handles = register_tools(server, dispatcher=dispatcher)

    @server.resource(
        "resource://worklog/status",
        name="worklog_status",
        title="Worklog Status",
        description="Provides the current runtime status for the worklog server.",
        mime_type="application/json",
        tags={"status", "health"},
    )
    def status_resource(context: Context) -> str:
        """Return a JSON string summarizing the work data store."""

        return json.dumps(build_status(store, settings, request_id=getattr(context, "request_id", None)))

    setattr(server, "session_store", store)
    setattr(server, "dispatcher", dispatcher)
    setattr(server, "tool_handles", handles)
    return server


def main() -> None:
    """Entry point for running the worklog MCP server via CLI."""

    settings = get_settings()
    configure_logging(settings.log_level)

    server = create_server(settings)
    logging.getLogger(__name__).info(
        "Launching worklog MCP server",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "data_file": str(settings.data_file),
            "timezone": settings.timezone,
        },
    )
    server.run()


if __name__ == "__main__":
    main()
