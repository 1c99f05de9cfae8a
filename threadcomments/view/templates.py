"""Markup templates for threads, comments and filter options.

Every function is referentially transparent: the same entities and context
always give the same markup. The renderer relies on that for cache eviction.
"""

from dataclasses import dataclass
from html import escape
from typing import Optional

from threadcomments.core.timestamps import format_timestamp
from threadcomments.core.types import (
    CommentDTO,
    FilterOption,
    ProcessDTO,
    ThreadAction,
    ThreadDTO,
)
from threadcomments.core.visibility import create_process_name

DEFAULT_DATE_FORMAT = "%d/%m/%Y, %H:%M"


@dataclass(frozen=True)
class RenderContext:
    """Inputs shared by all templates besides the entity itself."""

    current_user: str = ""
    date_format: str = DEFAULT_DATE_FORMAT


def action_link(action: ThreadAction, text: str, title: str = "") -> str:
    """Element carrying an action marker, picked up by event delegation."""
    title_attr = f' title="{escape(title)}"' if title else ""
    return f'<a href="action:{action.value}" data-action="{action.value}"{title_attr}>{escape(text)}</a>'


def render_thread_title(thread: ThreadDTO, comments_count: int, context: RenderContext) -> str:
    """Name plus the "(reporter, comments, modified date, process, state)" info line."""
    modified_str = format_timestamp(thread.modified, context.date_format)
    process_name = create_process_name(thread.process)
    info = [
        thread.reporter and f"<label>reporter:</label> {escape(thread.reporter)}",
        comments_count and f"<label>comments:</label> {comments_count}",
        modified_str and f"<label>modified date:</label> {escape(modified_str)}",
        process_name and f"<label>process:</label> {escape(process_name)}",
        "resolved" if thread.resolved else "open",
    ]
    info_text = ", ".join(part for part in info if part)
    return (
        f'<span class="name">{escape(thread.name)}</span> '
        f'<span class="info">({info_text})</span>'
    )


def render_thread_header(thread: ThreadDTO, comments_count: int, context: RenderContext) -> str:
    """Header row: expand toggle, title and title actions."""
    resolve_text = "Reopen" if thread.resolved else "Resolve"
    resolve_title = "Resolved (click to open)" if thread.resolved else "Open (click to resolve)"
    actions = " | ".join([
        action_link(ThreadAction.ADD_COMMENT, "Comment", "Add comment"),
        action_link(ThreadAction.RESOLVE_THREAD, resolve_text, resolve_title),
    ])
    return (
        f'<div class="main-row">'
        f'{action_link(ThreadAction.EXPAND_THREAD, "+", "Expand/collapse comments")} '
        f'<div class="title-text">{render_thread_title(thread, comments_count, context)}</div> '
        f'<div class="title-actions">{actions}</div>'
        f'</div>'
    )


def thread_class_names(thread: ThreadDTO, comments_count: int) -> dict[str, bool]:
    """State classes of a thread node derived from data (not view state)."""
    return {
        "empty": not comments_count,
        "resolved": thread.resolved,
    }


def render_comment(comment: CommentDTO, context: RenderContext) -> str:
    is_current_user = comment.user == context.current_user
    me = ' <span class="me">(me)</span>' if is_current_user else ""
    return (
        f'<div class="comment" data-id="{comment.id}" '
        f'data-thread-id="{comment.thread_id}" data-position="{comment.position}">'
        f'<div class="title"><span class="name">{escape(comment.user)}</span>{me}</div>'
        f'<div class="content">{escape(comment.content)}</div>'
        f'</div>'
    )


def render_thread_comments(comments: list[CommentDTO], context: RenderContext) -> str:
    """Comment body of a thread. Comments must already be in position order."""
    return "\n".join(render_comment(comment, context) for comment in comments)


def render_error(error: Optional[BaseException]) -> str:
    """Plain error text, empty when there is no error."""
    if error is None:
        return ""
    message = getattr(error, "message", None) or str(error)
    return escape(message)


def build_user_options(users: list[str], selected: set[str], current_user: str) -> list[FilterOption]:
    options = []
    for user in users:
        text = f"{user} (me)" if user == current_user else user
        options.append(FilterOption(value=user, text=text, selected=user in selected))
    return options


def build_process_options(
    process_ids: list[int],
    processes_hash: dict[int, ProcessDTO],
    selected: set[int],
) -> list[FilterOption]:
    options = []
    for process_id in process_ids:
        process = processes_hash.get(process_id) or ProcessDTO(id=process_id)
        options.append(FilterOption(
            value=str(process_id),
            text=create_process_name(process),
            selected=process_id in selected,
        ))
    return options
