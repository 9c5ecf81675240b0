from typing import List

from .constants import SERVER_SEPARATORS


def split(text: str, separators: str = SERVER_SEPARATORS, max_tokens: int = 0) -> List[str]:
    """Split text on any of the separator characters, dropping empty tokens.

    If max_tokens is non-zero, the last token holds the remainder of the input.
    """
    result = []
    i = 0
    n = len(text)
    while i < n:
        while i < n and text[i] in separators:
            i += 1
        if i >= n:
            break
        if max_tokens and len(result) + 1 == max_tokens:
            result.append(text[i:])
            break
        start = i
        while i < n and text[i] not in separators:
            i += 1
        result.append(text[start:i])
    return result


def split_servers(servers: str) -> List[str]:
    return split(servers, SERVER_SEPARATORS)


def csv_split(line: str) -> List[str]:
    """Split a CSV line on ',', ignoring commas inside quotes and keeping empty tokens."""
    result = []
    start = 0
    i = 0
    n = len(line)
    while i < n:
        c = line[i]
        if c in ('"', "'"):
            close = line.find(c, i + 1)
            if close == -1:
                break
            i = close
        elif c == ',':
            result.append(line[start:i])
            start = i + 1
        i += 1
    result.append(line[start:])
    return result


def seconds_to_human(s: float, show_positive: bool = False) -> str:
    a = abs(s)
    if a < 2:
        text = f"{1000 * s:.1f} ms"
    elif a < 2 * 60:
        text = f"{s:.1f} s"
    elif a < 2 * 60 * 60:
        text = f"{s / 60:.1f} min"
    elif a < 48 * 60 * 60:
        text = f"{s / (60 * 60):.1f} hrs"
    else:
        text = f"{s / (24 * 60 * 60):.1f} days"

    if show_positive and s > 0:
        text = "+" + text
    return text


def tz_offset_to_string(offset_minutes: int) -> str:
    sign = '-' if offset_minutes < 0 else '+'
    hours, minutes = divmod(abs(offset_minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


__all__ = [
    'split',
    'split_servers',
    'csv_split',
    'seconds_to_human',
    'tz_offset_to_string',
]
