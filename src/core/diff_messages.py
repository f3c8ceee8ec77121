"""Diff formatting and counting (core domain).

Turns discovery diffs into Telegram HTML notification bodies. Both chat
adapters send them with the HTML parse mode. The output is deterministic for
identical input so repeated alerts compare equal.
"""

from __future__ import annotations

import html
from typing import Iterable, List, Optional, Sequence

from core.config import TELEGRAM_MAX_MESSAGE_LENGTH
from core.models import DiffEntry, DiffKind, MessageContext

PRE_OPEN = '<pre><code class="language-diff">'
PRE_CLOSE = "</code></pre>"
TRUNCATED = "\n..."

# Below this a single code block cannot hold a meaningful line.
MIN_MESSAGE_LENGTH = 64


def cut_escaped(value: str, limit: int) -> str:
    """Shorten HTML-escaped text to ``limit`` characters without splitting an entity."""

    if len(value) <= limit:
        return value
    cut = value[:limit]
    amp = cut.rfind("&")
    if amp != -1 and ";" not in cut[amp:]:
        cut = cut[:amp]
    return cut


def pack_messages(blocks: Iterable[str], max_length: int, separator: str = "\n") -> List[str]:
    """Join blocks in order into as few messages of at most ``max_length`` as possible.

    A block is never split; callers keep each block within ``max_length``.
    """

    messages: List[str] = []
    current: Optional[str] = None
    for block in blocks:
        if current is None:
            current = block
            continue
        candidate = f"{current}{separator}{block}"
        if len(candidate) <= max_length:
            current = candidate
            continue
        messages.append(current)
        current = block
    if current is not None:
        messages.append(current)
    return messages


def count_diff(diff: Iterable[DiffEntry]) -> int:
    """Return the number of changes a diff represents.

    Created and deleted contracts count once, a modified contract counts one
    per changed field.
    """

    count = 0
    for entry in diff:
        if entry.kind in (DiffKind.CREATED, DiffKind.DELETED):
            count += 1
        else:
            count += len(entry.fields or ())
    return count


def _format_header(name: str, context: MessageContext) -> str:
    title = f"<b>{html.escape(name)}</b> | detected changes"
    if context.chain:
        title += f" on chain: <b>{html.escape(context.chain)}</b>"

    lines = [title]
    if context.nonce is not None:
        lines.append(f"nonce: {context.nonce:06d}")
    if context.block_number is not None:
        lines.append(f"block number: {context.block_number}")
    if context.dependents:
        lines.append(f"dependents: {html.escape(', '.join(context.dependents))}")
    return "\n".join(lines)


def _entry_lines(entry: DiffEntry) -> List[str]:
    label = f"{entry.name} | {entry.address}"
    if entry.kind is DiffKind.CREATED:
        return [f"+ New contract: {label}"]
    if entry.kind is DiffKind.DELETED:
        return [f"- Deleted contract: {label}"]

    lines = [label]
    for field_diff in entry.fields:
        lines.append("")
        lines.append(field_diff.key)
        if field_diff.before is not None:
            lines.append(f"- {field_diff.before}")
        if field_diff.after is not None:
            lines.append(f"+ {field_diff.after}")
    return lines


def _format_entry(entry: DiffEntry, max_length: int) -> str:
    body = html.escape("\n".join(_entry_lines(entry)))

    budget = max_length - len(PRE_OPEN) - len(PRE_CLOSE)
    if len(body) > budget:
        body = cut_escaped(body, budget - len(TRUNCATED)) + TRUNCATED
    return f"{PRE_OPEN}{body}{PRE_CLOSE}"


def diff_to_messages(
    name: str,
    diff: Sequence[DiffEntry],
    context: Optional[MessageContext] = None,
    max_length: int = TELEGRAM_MAX_MESSAGE_LENGTH,
) -> List[str]:
    """Render a project diff as one or more chat messages.

    The header (project, chain, nonce, block number, dependents) opens the
    first message. Every entry becomes its own ``diff`` code block and blocks
    are packed in order into messages of at most ``max_length`` characters;
    an entry too large for a single message is truncated.

    An empty diff renders to an empty list: callers check for emptiness
    before notifying, so there is no "no changes" message.
    """

    if not diff:
        return []
    if max_length < MIN_MESSAGE_LENGTH:
        raise ValueError(f"max_length must be at least {MIN_MESSAGE_LENGTH}, got {max_length}")

    header = _format_header(name, context or MessageContext())
    if len(header) > max_length:
        limit = max_length - len("<b></b>") - len(TRUNCATED)
        header = f"<b>{cut_escaped(html.escape(name), limit)}{TRUNCATED}</b>"

    blocks = [header] + [_format_entry(entry, max_length) for entry in diff]
    return pack_messages(blocks, max_length)
