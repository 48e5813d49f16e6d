"""Delimiter scanning with carry-over between fetched chunks."""

from __future__ import annotations
from typing import List

from .config import check_delimiter


class RecordSplitter:
    """Split an arbitrarily fragmented text stream into delimiter-bounded records.

    Text that follows the last delimiter seen so far is kept in ``carry`` until
    a later chunk completes it, so a delimiter (or a whole record) split across
    two chunks is still found exactly once.
    """

    def __init__(self, delimiter: str):
        self.delimiter = check_delimiter(delimiter)
        self.carry = ""

    def feed(self, text: str) -> List[str]:
        """Append ``text`` to the carry and return every record it completes."""
        if not text:
            return []

        # Everything in the carry was already scanned; only the last
        # len(delimiter) - 1 characters can start a match that ends in `text`.
        start = max(0, len(self.carry) - len(self.delimiter) + 1)
        data = self.carry + text
        self.carry = ""

        records = []
        step = len(self.delimiter)
        pos = 0
        while True:
            found = data.find(self.delimiter, max(pos, start))
            if found == -1:
                self.carry = data[pos:]
                return records
            records.append(data[pos:found])
            pos = found + step

    def finish(self) -> str:
        """Return the trailing text that never saw a delimiter and reset."""
        remainder, self.carry = self.carry, ""
        return remainder
