"""
Command line interface.

    fitme TARGET EXPR [DATA] [-o FORMAT] [--no-stats] [--debug]
          [--max-iter N] [--backend NAME]

Reads CSV (or TSV, by file extension) from DATA or stdin, fits EXPR to the
TARGET column and writes the parameters to stdout. Errors are printed to
stderr as a cause chain, outermost context first, and exit with status 1.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import IO, Sequence

from fitme import __version__
from fitme.core.datasource import Dataset
from fitme.core.exceptions import ColumnNotFoundError, FitmeError, NonNumericCellError
from fitme.core.headers import NO_MATCH_HELP, HeaderIndex
from fitme.expression.model import ExpressionModel
from fitme.fitting.solvers import fit
from fitme.render import FORMATS, write_results


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='fitme',
        description=(
            "CLI curve fitting tool. Parameterise an equation from a CSV dataset."
        ),
    )
    parser.add_argument('target', help="the target column (the Y value)")
    parser.add_argument('expr', help="the parameterised equation, e.g. 'm * x + c'")
    parser.add_argument(
        'data', nargs='?', type=Path, default=None,
        help="path to input CSV file; if left blank, stdin is read",
    )
    parser.add_argument(
        '-o', '--out', choices=FORMATS, default='table',
        help="output format written to stdout (default: %(default)s)",
    )
    parser.add_argument(
        '-n', '--no-stats', action='store_true',
        help="do not output the fitting statistics along with parameters",
    )
    parser.add_argument(
        '--debug', action='store_true',
        help="output debug information about the expression and input data; "
             "does not attempt a fit",
    )
    parser.add_argument(
        '--max-iter', type=int, default=None,
        help="iteration cap for the solver (default: 200)",
    )
    parser.add_argument(
        '--backend', choices=('auto', 'cpu_lm', 'cpu_minpack'), default='auto',
        help="solver backend (default: %(default)s)",
    )
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    return parser


class ContextError(FitmeError):
    """Outer layer naming where a failure happened (a file, stdin)."""
    pass


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        run(args, sys.stdin, sys.stdout, sys.stderr)
    except (FitmeError, OSError) as e:
        print_error(e, sys.stderr)
        return 1
    return 0


def run(args: argparse.Namespace, stdin: IO[str], stdout: IO[str], stderr: IO[str]) -> None:
    """
    Execute one CLI invocation.

    Raises:
        ContextError: Wrapping any failure after the input was opened
        OSError: Chained under a ContextError if DATA cannot be opened
    """
    if args.data is not None:
        context = f"in '{args.data}'"
        try:
            fh = args.data.open(newline="")
        except OSError as e:
            raise ContextError(f"failed to open '{args.data}'") from e
        sep = "\t" if args.data.suffix.lower() == ".tsv" else ","
        with fh:
            _run_with_input(args, fh, sep, str(args.data), context, stdout)
    else:
        context = "from stdin"
        print("Reading CSV from stdin", file=stderr)
        _run_with_input(args, stdin, ",", None, context, stdout)


def _run_with_input(
    args: argparse.Namespace,
    buffer: IO[str],
    sep: str,
    source_path: str | None,
    context: str,
    stdout: IO[str],
) -> None:
    try:
        data = Dataset.from_buffer(buffer, sep=sep, source_path=source_path)
        model = ExpressionModel.parse(args.expr, data.headers)
        if args.debug:
            write_debug(model, data.headers, args.target, stdout)
            return
        solution = fit(
            model, data, args.target, backend=args.backend, max_iter=args.max_iter
        )
    except FitmeError as e:
        raise ContextError(context) from e

    write_results(
        solution.result, stdout, fmt=args.out, stats=not args.no_stats
    )


def write_debug(
    model: ExpressionModel, headers: HeaderIndex, target: str, stdout: IO[str]
) -> None:
    """
    Describe how the expression resolved, without fitting.

    Raises:
        ColumnNotFoundError: If the target does not match a header
    """
    lines = ["Expression:", f"  {model.expr}", "Parameters:"]
    if not model.params:
        lines.append("  <none>")
    for p in model.params:
        help_text = headers.match_help(p)
        if help_text == NO_MATCH_HELP:
            lines.append(f"  {p}")
        else:
            lines.append(f"  {p} :: {help_text}")

    lines.append("Variables:")
    if not model.vars:
        lines.append("  <none>")
    for v in model.vars:
        lines.append(f"  {v}")

    lines.extend(["Target:", f"  {target}"])
    stdout.write("\n".join(lines) + "\n")

    headers.resolve(target)


def error_chain(exc: BaseException) -> list[str]:
    """Messages from the outermost exception down to the root cause."""
    layers: list[str] = []
    current: BaseException | None = exc
    while current is not None:
        if isinstance(current, ColumnNotFoundError):
            layers.append(current.help)
            layers.append(f"could not find column '{current.column}' in headers")
        elif isinstance(current, NonNumericCellError):
            layers.append(f"in row index {current.row}")
            layers.append(f"in column index {current.column}")
            layers.append(f"failed to parse '{current.value}' as number")
        elif isinstance(current, OSError) and current.strerror:
            layers.append(current.strerror)
        else:
            layers.append(str(current))
        current = current.__cause__
    return layers


def print_error(exc: BaseException, stream: IO[str]) -> None:
    """
    Print the cause chain:

        Error:
          × outermost
          ├─▶ context
          ╰─▶ root cause
    """
    layers = error_chain(exc)
    lines = ["Error:", f"  × {layers[0]}"]
    for i, message in enumerate(layers[1:], start=1):
        branch = "╰─▶" if i == len(layers) - 1 else "├─▶"
        lines.append(f"  {branch} {message}")
    stream.write("\n".join(lines) + "\n")


if __name__ == '__main__':
    sys.exit(main())
