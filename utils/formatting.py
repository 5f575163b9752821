"""
Display helpers for local model entries
"""
import re
from datetime import datetime


def format_size(size_bytes: int) -> str:
    """
    Render a byte count for the models table.

    Args:
        size_bytes: Size reported by the backend

    Returns:
        Size with a binary unit, e.g. '3.8 GB'
    """
    size = float(size_bytes or 0)
    for unit in ('B', 'KB', 'MB', 'GB'):
        if size < 1024:
            return f"{int(size)} {unit}" if unit == 'B' else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def format_modified(timestamp: str) -> str:
    """
    Render a modification timestamp as 'YYYY-MM-DD HH:MM'.

    Unparseable values are returned unchanged.
    """
    if not timestamp:
        return ''
    value = timestamp
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    # Backends may send nanosecond precision, which fromisoformat rejects
    if '.' in value:
        head, _, tail = value.partition('.')
        match = re.match(r"(\d*)(.*)", tail)
        digits, offset = match.group(1), match.group(2)
        value = f"{head}.{digits[:6].ljust(6, '0')}{offset}"
    try:
        return datetime.fromisoformat(value).strftime('%Y-%m-%d %H:%M')
    except ValueError:
        return timestamp
