"""
Output formats for fit results.

    table  bordered table with box-drawing rules
    plain  space separated table
    csv    comma separated, full precision
    md     Markdown table
    json   single JSON object of the FitResult fields

table, plain and md use short numbers; csv and json keep full precision.
All formats except json are followed by the statistics footer unless
stats=False.
"""

from __future__ import annotations

import json
import math
from typing import Callable, IO, Sequence

from fitme.fitting.solution import FitResult

FORMATS = ('table', 'plain', 'csv', 'md', 'json')

HEADER = ('Parameter', 'Value', 'Standard Error', 't-value')


def short_number(x: float) -> str:
    """
    Compact display form of x.

    Truncated (not rounded) to 3 decimals, 2 from 10, 1 from 100;
    scientific notation from 1e6. Non-finite values print as nan/inf.
    """
    if not math.isfinite(x):
        return str(x)
    magnitude = abs(x)
    if magnitude >= 1e6:
        return f"{x:.3e}"
    if magnitude >= 100:
        decimals = 1
    elif magnitude >= 10:
        decimals = 2
    else:
        decimals = 3
    scale = 10 ** decimals
    # round first so 0.29 * 100 = 28.999... still truncates to 29
    truncated = math.trunc(round(x * scale, 6)) / scale
    return f"{truncated:.{decimals}f}"


def stats_footer(result: FitResult) -> list[str]:
    return [
        f"  Number of observations: {result.n}",
        f"  Root Mean Squared Residual error: {short_number(result.rmsr)}",
        f"  R-sq Adjusted: {short_number(result.adjusted_r_squared)}",
    ]


def _cells(result: FitResult, fmt_number: Callable[[float], str]) -> list[tuple[str, ...]]:
    return [
        (name, fmt_number(value), fmt_number(se), fmt_number(t))
        for name, value, se, t in result.rows()
    ]


def _widths(rows: Sequence[Sequence[str]]) -> list[int]:
    return [max(len(row[j]) for row in rows) for j in range(len(HEADER))]


def _align(row: Sequence[str], widths: Sequence[int]) -> list[str]:
    # First column left aligned, numbers right aligned
    return [
        cell.ljust(w) if j == 0 else cell.rjust(w)
        for j, (cell, w) in enumerate(zip(row, widths))
    ]


def render_table(result: FitResult) -> list[str]:
    body = _cells(result, short_number)
    widths = _widths([HEADER, *body])

    def line(row: Sequence[str]) -> str:
        return " ".join(f" {c} " for c in _align(row, widths))

    header_line = " ".join(f" {c} " for c in (h.ljust(w) for h, w in zip(HEADER, widths)))
    rule = "─" * len(header_line)
    lines = [rule, header_line, "═" * len(header_line)]
    for row in body:
        lines.append(line(row))
        lines.append(rule)
    return lines


def render_plain(result: FitResult) -> list[str]:
    body = _cells(result, short_number)
    widths = _widths([HEADER, *body])
    lines = ["".join(f" {h.ljust(w)} " for h, w in zip(HEADER, widths))]
    for row in body:
        lines.append("".join(f" {c} " for c in _align(row, widths)))
    return lines


def render_md(result: FitResult) -> list[str]:
    body = _cells(result, short_number)
    widths = _widths([HEADER, *body])
    lines = [
        "|" + "|".join(f" {h.ljust(w)} " for h, w in zip(HEADER, widths)) + "|",
        "|" + "|".join("-" * (w + 2) for w in widths) + "|",
    ]
    for row in body:
        lines.append("|" + "|".join(f" {c} " for c in _align(row, widths)) + "|")
    return lines


def render_csv(result: FitResult) -> list[str]:
    lines = [",".join(HEADER)]
    for name, value, se, t in result.rows():
        lines.append(",".join([name, repr(value), repr(se), repr(t)]))
    return lines


def render_json(result: FitResult) -> str:
    """Compact JSON; non-finite numbers are written as null."""
    payload = {
        key: _json_safe(value) for key, value in result.to_dict().items()
    }
    return json.dumps(payload, separators=(',', ':'), allow_nan=False)


def _json_safe(value):
    if isinstance(value, list):
        return [_json_safe(v) for v in value]
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


_RENDERERS: dict[str, Callable[[FitResult], list[str]]] = {
    'table': render_table,
    'plain': render_plain,
    'csv': render_csv,
    'md': render_md,
}


def write_results(
    result: FitResult, stream: IO[str], *, fmt: str = 'table', stats: bool = True
) -> None:
    """
    Write result to stream in the requested format.

    Raises:
        ValueError: If fmt is not one of FORMATS
    """
    if fmt == 'json':
        stream.write(render_json(result))
        return
    try:
        renderer = _RENDERERS[fmt]
    except KeyError:
        raise ValueError(
            f"Unknown output format: {fmt!r} (expected one of {', '.join(FORMATS)})"
        ) from None

    lines = renderer(result)
    if stats:
        lines.extend(stats_footer(result))
    stream.write("\n".join(lines) + "\n")
