from __future__ import annotations

import re

try:
    from .models import Member
except ImportError:  # pragma: no cover
    # Support running with CWD=nest (e.g., `python -m uvicorn main:app`).
    from models import Member

_WS_RE = re.compile(r"\s+")


def display_label(member: Member) -> str:
    """Format used wherever content is attributed: "Nickname-or-Name (Relationship)"."""

    rel = (member.relationship or "").strip()
    name = member.display_name
    return f"{name} ({rel})" if rel else name


def initials(raw: str | None) -> str:
    """Up to two upper-case initials, e.g. "anne marie smith" -> "AM"."""

    s = (raw or "").strip()
    if not s:
        return ""
    return "".join(part[0] for part in _WS_RE.split(s))[:2].upper()
