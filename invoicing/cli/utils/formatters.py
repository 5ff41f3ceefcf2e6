"""Output formatting utilities for the CLI."""

from typing import Any, List

import click


def format_success(message: str) -> str:
    return click.style(f"✓ {message}", fg="green", bold=True)


def format_error(message: str) -> str:
    return click.style(f"✗ {message}", fg="red", bold=True)


def format_warning(message: str) -> str:
    return click.style(f"⚠ {message}", fg="yellow", bold=True)


def format_info(message: str) -> str:
    return click.style(f"ℹ {message}", fg="blue")


def format_table(headers: List[str], rows: List[List[Any]], max_width: int = 40) -> str:
    """Render rows as a boxed plain-text table.

    Args:
        headers: Column headers
        rows: Data rows; cells are converted with str()
        max_width: Cells wider than this are truncated

    Returns:
        The table, or an empty string when there are no headers
    """
    if not headers:
        return ""

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row[: len(widths)]):
            widths[i] = max(widths[i], len(str(cell)))
    widths = [min(w, max_width) for w in widths]

    separator = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def line(cells: List[Any]) -> str:
        padded = [f" {str(cell)[:widths[i]]:<{widths[i]}} " for i, cell in enumerate(cells[: len(widths)])]
        return "|" + "|".join(padded) + "|"

    lines = [separator, line(headers), separator]
    if rows:
        lines.extend(line(row) for row in rows)
        lines.append(separator)
    return "\n".join(lines)
