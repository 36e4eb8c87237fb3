"""
Tabular observations for fitme.

Dataset is the "I have rows" abstraction: a HeaderIndex plus rows of cells,
where each cell is either a number or the raw text that failed to parse as
one. It doesn't know what formula will be fitted, so text cells are kept
rather than rejected; only the columns a fit actually references need to
be numeric, and that is checked by the fitting design.

Usage:
    from fitme.core.datasource import Dataset

    ds = Dataset.from_file("data.csv")
    ds = Dataset.from_buffer(sys.stdin)
    ds = Dataset.from_dataframe(df)
    ds = Dataset.from_rows(["x", "y"], [[1.0, 2.0], [2.0, 4.1]])

    ds.headers.resolve("y")    # column index
    ds.numeric_column(1)       # float64 array, or NonNumericCellError
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, IO, Iterator, Sequence, TYPE_CHECKING, Union

import numpy as np
from numpy.typing import NDArray

from fitme.core.exceptions import DimensionError, NonNumericCellError, ValidationError
from fitme.core.headers import HeaderIndex
from fitme.core.validation import check_row_lengths

if TYPE_CHECKING:
    import pandas as pd

Cell = Union[float, str]
Row = tuple[Cell, ...]


def parse_cell(raw: Any) -> Cell:
    """
    Best-effort numeric parse of a raw cell.

    Numbers pass through as float; text that parses as a float becomes a
    float; anything else is kept as text.
    """
    if isinstance(raw, (int, float, np.integer, np.floating)) and not isinstance(raw, bool):
        return float(raw)
    text = str(raw)
    try:
        return float(text)
    except ValueError:
        return text


@dataclass(frozen=True)
class Dataset:
    """
    Immutable set of observation rows aligned to a HeaderIndex.

    Construct via factory classmethods, not directly. Every row has exactly
    as many cells as there are headers.
    """
    _headers: HeaderIndex
    _rows: tuple[Row, ...]
    _metadata: dict[str, Any] = field(default_factory=dict)

    # === Row access ===

    @property
    def headers(self) -> HeaderIndex:
        return self._headers

    @property
    def rows(self) -> tuple[Row, ...]:
        return self._rows

    def row(self, index: int) -> Row:
        return self._rows[index]

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self._rows)

    @property
    def n_observations(self) -> int:
        """Number of observation rows (headers excluded)."""
        return len(self._rows)

    @property
    def metadata(self) -> dict[str, Any]:
        return self._metadata.copy()

    def is_empty(self) -> bool:
        """True if there are no data rows (there may still be headers)."""
        return not self._rows

    # === Column access ===

    def numeric_column(self, column: int) -> NDArray[np.float64]:
        """
        Return a column as a float64 array.

        Raises:
            NonNumericCellError: At the first text cell in the column
        """
        out = np.empty(len(self._rows), dtype=np.float64)
        for i, row in enumerate(self._rows):
            cell = row[column]
            if isinstance(cell, str):
                raise NonNumericCellError(
                    f"failed to parse '{cell}' as number "
                    f"(row index {i}, column index {column})",
                    row=i,
                    column=column,
                    value=cell,
                )
            out[i] = cell
        return out

    # === Factory Methods ===

    @classmethod
    def from_rows(
        cls,
        headers: HeaderIndex | Iterable[str],
        rows: Iterable[Sequence[Any]],
        *,
        metadata: dict[str, Any] | None = None,
    ) -> Dataset:
        """
        Construct from headers and rows of raw cells.

        Raises:
            DimensionError: If any row length differs from the header count
        """
        if not isinstance(headers, HeaderIndex):
            headers = HeaderIndex.from_names(headers)

        materialised = [tuple(parse_cell(c) for c in row) for row in rows]
        check_row_lengths(materialised, len(headers))

        meta = {'n_observations': len(materialised), 'source': 'rows'}
        if metadata:
            meta.update(metadata)
        return cls(_headers=headers, _rows=tuple(materialised), _metadata=meta)

    @classmethod
    def from_dataframe(
        cls, df: 'pd.DataFrame', *, source_path: str | None = None
    ) -> Dataset:
        """Construct from a pandas DataFrame; cells are parsed best-effort."""
        if len(df.columns) == 0:
            raise ValidationError("headers row is empty")

        metadata: dict[str, Any] = {'source': 'dataframe'}
        if source_path:
            metadata['source_path'] = source_path

        return cls.from_rows(
            HeaderIndex.from_names(df.columns),
            df.itertuples(index=False, name=None),
            metadata=metadata,
        )

    @classmethod
    def from_buffer(
        cls, buffer: IO[str], *, sep: str = ",", source_path: str | None = None
    ) -> Dataset:
        """
        Construct from delimited text in a file-like object (e.g. stdin).

        Every cell is read as text and parsed by parse_cell, so a column may
        mix numbers and text.

        Raises:
            ValidationError: If the input is empty or a record has more
                fields than the header row
            DimensionError: If a record has fewer fields than the header row
        """
        import pandas as pd

        try:
            df = pd.read_csv(
                buffer,
                sep=sep,
                dtype=str,
                keep_default_na=False,
                engine='python',
            )
        except pd.errors.EmptyDataError as e:
            raise ValidationError("failed to read CSV header row: input is empty") from e
        except pd.errors.ParserError as e:
            raise ValidationError(f"failed to read CSV: {e}") from e

        # Missing fields come back as NaN; an empty field stays ''.
        missing = df.isna().to_numpy()
        short = np.flatnonzero(missing.any(axis=1))
        if short.size:
            i = int(short[0])
            raise DimensionError(
                f"row index {i} does not have the same length as the headers "
                f"(expected {len(df.columns)}, got {int((~missing[i]).sum())})",
                row=i,
            )

        return cls.from_dataframe(df, source_path=source_path)

    @classmethod
    def from_file(cls, path: str | Path) -> Dataset:
        """Construct from a CSV or TSV file."""
        path = Path(path)
        suffix = path.suffix.lower()
        sep = "\t" if suffix == ".tsv" else ","

        with path.open(newline="") as fh:
            return cls.from_buffer(fh, sep=sep, source_path=str(path))

    def __repr__(self) -> str:
        return (
            f"Dataset(n_observations={self.n_observations}, "
            f"headers={list(self._headers)!r})"
        )
