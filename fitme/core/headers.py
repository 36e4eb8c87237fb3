"""
Column headers and lookup.

HeaderIndex is the ordered list of column names read from the input. The
position of a name is its column index. Lookups come in three strengths
(exact, case-insensitive, case- and whitespace-insensitive); variable and
target resolution use the loosest one, so a header "a Space Col" is found
by the query "aSpaceCol".

When a lookup fails the index can suggest similar headers, which is
attached to ColumnNotFoundError as help text.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator

from fitme.core.exceptions import ColumnNotFoundError

NO_MATCH_HELP = (
    "help - no columns match, use `cat <file> | head -n1` to inspect headers"
)
SIMILAR_HELP = "help - these headers are similar:"

# difflib ratio below which a header is not considered similar
FUZZY_CUTOFF = 0.5


def _strip_ws(s: str) -> str:
    return "".join(c for c in s if not c.isspace())


def eq_ignore_case_and_ws(a: str, b: str) -> bool:
    """True if a and b are equal once whitespace is removed and case ignored."""
    return _strip_ws(a).lower() == _strip_ws(b).lower()


@dataclass(frozen=True)
class HeaderIndex:
    """
    Ordered, immutable sequence of column names.

    Construct with HeaderIndex.from_names(); names are trimmed of
    surrounding whitespace.
    """
    _names: tuple[str, ...]

    @classmethod
    def from_names(cls, names: Iterable[object]) -> HeaderIndex:
        return cls(_names=tuple(str(n).strip() for n in names))

    # === Sequence behaviour ===

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __getitem__(self, index: int) -> str:
        return self._names[index]

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    # === Lookup ===

    def find_match(self, predicate: Callable[[str], bool]) -> int | None:
        """Index of the first header satisfying predicate, or None."""
        for i, name in enumerate(self._names):
            if predicate(name):
                return i
        return None

    def find(self, s: str) -> int | None:
        """Exact match."""
        return self.find_match(lambda x: x == s)

    def find_ignore_case(self, s: str) -> int | None:
        """Match ignoring case."""
        s_lower = s.lower()
        return self.find_match(lambda x: x.lower() == s_lower)

    def find_ignore_case_and_ws(self, s: str) -> int | None:
        """Match ignoring case and any whitespace."""
        return self.find_match(lambda x: eq_ignore_case_and_ws(x, s))

    def resolve(self, s: str) -> int:
        """
        Resolve a column name to its index.

        Raises:
            ColumnNotFoundError: With fuzzy-match help attached
        """
        idx = self.find_ignore_case_and_ws(s)
        if idx is None:
            help_text = self.match_help(s)
            raise ColumnNotFoundError(
                f"could not find column '{s}' in headers ({help_text})",
                column=s,
                help=help_text,
            )
        return idx

    # === Diagnostics ===

    def fuzzy_match(self, s: str) -> list[str]:
        """
        Headers similar to s, best first, with whitespace removed.

        Similarity is judged on the lower-cased, whitespace-free forms;
        a header that contains the query (or vice versa) always matches.
        """
        query = _strip_ws(s).lower()
        if not query:
            return []

        scored = []
        for i, name in enumerate(self._names):
            candidate = _strip_ws(name).lower()
            if not candidate:
                continue
            ratio = difflib.SequenceMatcher(None, query, candidate).ratio()
            if query in candidate or candidate in query:
                ratio = max(ratio, FUZZY_CUTOFF)
            if ratio >= FUZZY_CUTOFF:
                scored.append((-ratio, i))

        return [_strip_ws(self._names[i]) for _, i in sorted(scored)]

    def match_help(self, s: str) -> str:
        """Human readable suggestion for a failed lookup of s."""
        similar = self.fuzzy_match(s)
        if not similar:
            return NO_MATCH_HELP
        return " ".join([SIMILAR_HELP, *similar])

    def __repr__(self) -> str:
        return f"HeaderIndex({list(self._names)!r})"
