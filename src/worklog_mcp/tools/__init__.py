"""Tool registration for the worklog MCP server."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastmcp import Context, FastMCP

from ..dispatcher import HandlerResult, WorklogDispatcher

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ToolHandles:
    start_work: Any
    resume_work: Any
    begin_break: Any
    end_break: Any
    end_work: Any
    view_work_log: Any
    record_summary_message: Any
    delete_work: Any
    modify_work: Any
    show_work: Any


def _emit_log(
    context: Context | None,
    level: str,
    message: str,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Best-effort logging that prefers the MCP context logger when available."""

    payload = extra or {}

    if context is not None:
        ctx_logger = getattr(context, "logger", None)
        if ctx_logger is not None:
            log_method = getattr(ctx_logger, level, None)
            if callable(log_method):
                log_method(message, extra=payload)
                return

    fallback = getattr(logger, level, logger.info)
    fallback(message, extra=payload)


def _respond(
    context: Context | None, tool: str, result: HandlerResult, **extra: Any
) -> dict[str, Any]:
    _emit_log(
        context,
        "debug",
        "Handled worklog tool call",
        extra={"tool": tool, "ok": result.ok, "error": result.error.value if result.error else None, **extra},
    )
    return result.to_payload()


def register_tools(server: FastMCP, *, dispatcher: WorklogDispatcher) -> ToolHandles:
    """Register the worklog event handlers as MCP tools on the server."""

    async def _start_work(
        user_id: str,
        username: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Start today's work session for a user."""

        result = await dispatcher.on_start_command(user_id, username)
        return _respond(context, "start_work", result, user_id=user_id)

    async def _resume_work(user_id: str, context: Context | None = None) -> dict[str, Any]:
        """Report today's session so the caller can re-render its controls."""

        result = await dispatcher.on_resume_command(user_id)
        return _respond(context, "resume_work", result, user_id=user_id)

    async def _begin_break(
        user_id: str,
        observed_state: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        result = await dispatcher.on_begin_break_button(user_id, observed_state)
        return _respond(context, "begin_break", result, user_id=user_id)

    async def _end_break(
        user_id: str,
        observed_state: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        result = await dispatcher.on_end_break_button(user_id, observed_state)
        return _respond(context, "end_break", result, user_id=user_id)

    async def _end_work(
        user_id: str,
        observed_state: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        result = await dispatcher.on_end_button(user_id, observed_state)
        return _respond(context, "end_work", result, user_id=user_id)

    async def _view_work_log(
        user_id: str,
        date: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        result = await dispatcher.on_view_log(user_id, date)
        return _respond(context, "view_work_log", result, user_id=user_id, date=date)

    async def _record_summary_message(
        user_id: str,
        date: str,
        message_id: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        result = await dispatcher.on_summary_published(user_id, date, message_id)
        return _respond(context, "record_summary_message", result, user_id=user_id, date=date)

    async def _delete_work(
        requester_roles: list[str],
        user_id: str,
        date: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        result = await dispatcher.on_admin_delete(requester_roles, user_id, date)
        return _respond(context, "delete_work", result, user_id=user_id, date=date)

    async def _modify_work(
        requester_roles: list[str],
        user_id: str,
        date: str,
        field: str,
        value: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        result = await dispatcher.on_admin_modify(requester_roles, user_id, date, field, value)
        return _respond(context, "modify_work", result, user_id=user_id, date=date, field=field)

    async def _show_work(
        requester_roles: list[str],
        user_id: str,
        date: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        result = await dispatcher.on_admin_show(requester_roles, user_id, date)
        return _respond(context, "show_work", result, user_id=user_id, date=date)

    tool_start = server.tool(
        name="start_work",
        description="Start tracking today's work time for a user.",
    )(_start_work)

    tool_resume = server.tool(
        name="resume_work",
        description="Return today's session and its current state (started or on break).",
    )(_resume_work)

    tool_begin_break = server.tool(
        name="begin_break",
        description=(
            "Start a break. Pass observed_state (the state the controls were shown for) "
            "to reject presses that raced with another event."
        ),
    )(_begin_break)

    tool_end_break = server.tool(
        name="end_break",
        description="End the ongoing break for today's session.",
    )(_end_break)

    tool_end = server.tool(
        name="end_work",
        description="End today's session. An ongoing break is left open.",
    )(_end_work)

    tool_view = server.tool(
        name="view_work_log",
        description="Show a user's work log for a date (YYYY-MM-DD, default today).",
    )(_view_work_log)

    tool_summary = server.tool(
        name="record_summary_message",
        description="Remember the id of the published summary message for a day.",
    )(_record_summary_message)

    tool_delete = server.tool(
        name="delete_work",
        description="Delete a user's work data for one date (admin role required).",
    )(_delete_work)

    tool_modify = server.tool(
        name="modify_work",
        description=(
            "Modify start, end, or break-X-start/end for a user's date (admin role required). "
            "Values may be ISO timestamps or times such as 2:28:40 am."
        ),
    )(_modify_work)

    tool_show = server.tool(
        name="show_work",
        description="Show a user's work data for one date (admin role required).",
    )(_show_work)

    return ToolHandles(
        start_work=tool_start,
        resume_work=tool_resume,
        begin_break=tool_begin_break,
        end_break=tool_end_break,
        end_work=tool_end,
        view_work_log=tool_view,
        record_summary_message=tool_summary,
        delete_work=tool_delete,
        modify_work=tool_modify,
        show_work=tool_show,
    )


__all__ = ["register_tools", "ToolHandles"]
