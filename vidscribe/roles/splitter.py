"""Split a transcript in two near its middle, at a paragraph or sentence end."""

from __future__ import annotations

# Preferred break points, best first
SEPARATORS = ("\n\n", ". ")


def find_split_point(text: str, tolerance: float = 0.2) -> int:
    """Return the index at which to cut *text* into two halves.

    Looks for the last paragraph break (``"\\n\\n"``) at or before the
    midpoint, then for the last sentence end (``". "``). A candidate is used
    only if it lies within ``tolerance * len(text)`` characters of the
    midpoint; the cut goes right after the separator. Otherwise the exact
    midpoint is returned.
    """
    midpoint = len(text) // 2
    max_distance = len(text) * tolerance

    for sep in SEPARATORS:
        index = text.rfind(sep, 0, midpoint + len(sep))
        if index != -1 and midpoint - index <= max_distance:
            return index + len(sep)

    return midpoint


def split_transcript(text: str, tolerance: float = 0.2) -> tuple[str, str]:
    """Cut *text* at :func:`find_split_point`.

    Raises:
        ValueError: If either half would be blank.
    """
    point = find_split_point(text, tolerance)
    first, second = text[:point], text[point:]
    if not first.strip() or not second.strip():
        raise ValueError("Could not split the text into two non-empty parts")
    return first, second
