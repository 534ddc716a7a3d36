"""Identifier case conversion driven by free-text naming conventions."""

from __future__ import annotations

import re

_WORD_SPLIT = re.compile(r"[\s\-_./]+")


def to_snake(name: str) -> str:
    """Convert PascalCase / camelCase to snake_case, keeping acronyms together.

    Examples:
        >>> to_snake("UserService")
        'user_service'
        >>> to_snake("HTMLParser")
        'html_parser'
        >>> to_snake("getHTTPResponse")
        'get_http_response'
        >>> to_snake("UserID")
        'user_id'
    """
    out: list[str] = []
    for i, ch in enumerate(name):
        if ch.isupper() and i > 0:
            prev_lower = name[i - 1].islower()
            next_lower = i + 1 < len(name) and name[i + 1].islower()
            if (prev_lower or next_lower) and out[-1] != "_":
                out.append("_")
        out.append(ch.lower())
    return "".join(out)


def split_words(name: str) -> list[str]:
    """Split any identifier into lowercase words."""
    return [w for w in _WORD_SPLIT.split(to_snake(name)) if w]


def detect_case(convention: str) -> str | None:
    """Map a naming convention description to a case style.

    Returns one of ``snake``, ``kebab``, ``pascal``, ``camel``, ``upper``,
    ``lower``, or None when the text names no recognizable style.
    """
    text = convention.casefold()
    if not text:
        return None
    if "upper_snake" in text or "screaming" in text or "upper snake" in text:
        return "upper"
    if "snake" in text:
        return "snake"
    if "kebab" in text or "dash" in text:
        return "kebab"
    if "pascal" in text or "upper camel" in text:
        return "pascal"
    if "camel" in text:
        return "camel"
    if "lower" in text:
        return "lower"
    if "upper" in text:
        return "upper"
    return None


def apply_case(name: str, style: str | None) -> str:
    """Render *name* in *style*; unknown or missing styles yield snake_case."""
    words = split_words(name)
    if not words:
        return name
    match style:
        case "kebab":
            return "-".join(words)
        case "pascal":
            return "".join(w.capitalize() for w in words)
        case "camel":
            return words[0] + "".join(w.capitalize() for w in words[1:])
        case "upper":
            return "_".join(words).upper()
        case "lower":
            return "".join(words)
        case _:
            return "_".join(words)
