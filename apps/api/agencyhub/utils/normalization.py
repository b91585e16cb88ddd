"""Text normalization helpers for queries."""


def escape_like_string(value: str, escape_char: str = "\\") -> str:
    """Escape LIKE wildcards so user text matches literally (use with escape=escape_char)."""
    return (
        value.replace(escape_char, escape_char * 2)
        .replace("%", f"{escape_char}%")
        .replace("_", f"{escape_char}_")
    )
