from __future__ import annotations

import unicodedata


def normalize_text(value: str) -> str:
    """Return printable text for a filesystem name.

    Undecodable bytes arrive as lone surrogates; terminal rendering rejects
    those, so they become replacement characters. Output is NFC so names
    typed on macOS and Linux render the same.
    """
    safe = value.encode("utf-8", "surrogateescape").decode("utf-8", "replace")
    return unicodedata.normalize("NFC", safe)


def format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024:
            return f"{int(value)} B" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TB"
