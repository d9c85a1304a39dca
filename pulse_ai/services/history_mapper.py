from __future__ import annotations


def render_history(history: list | None = None) -> str:
    """Render ChatRequest.history as ``- role: content`` lines, oldest first."""
    lines = []
    for h in history or []:
        role = h.role if hasattr(h, "role") else h.get("role")
        content = h.content if hasattr(h, "content") else h.get("content")
        lines.append(f"- {role}: {content or ''}")
    return "\n".join(lines)
