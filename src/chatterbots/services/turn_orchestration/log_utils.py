"""Shared log/text helpers for turn orchestration."""

from __future__ import annotations

from typing import Optional


def truncate_log_text(text: Optional[str], max_chars: int = 160) -> str:
    """Trim utterance text for logs while preserving head and tail context."""
    content = (text or "").replace("\r", "").replace("\n", " ")
    if len(content) <= max_chars:
        return content
    head = int(max_chars * 0.7)
    tail = max_chars - head
    return f"{content[:head]} ...[truncated]... {content[-tail:]}"
