"""Output helpers for CLI commands."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from typing import Any

__all__ = ["print_json", "print_table"]


def print_table(rows: Iterable[Sequence[Any]], headers: Sequence[str]) -> None:
    """Render ``rows`` as a left-aligned plain-text table."""

    rendered = [["-" if value in (None, "") else str(value) for value in row] for row in rows]
    if not rendered:
        print("No results.")
        return

    widths = [len(header) for header in headers]
    for row in rendered:
        for index, text in enumerate(row):
            widths[index] = max(widths[index], len(text))

    print("  ".join(header.ljust(widths[index]) for index, header in enumerate(headers)).rstrip())
    for row in rendered:
        print("  ".join(text.ljust(widths[index]) for index, text in enumerate(row)).rstrip())


def print_json(data: Any) -> None:
    """Emit ``data`` as formatted JSON for scripting."""

    print(json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False))
