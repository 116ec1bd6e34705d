"""
Source Normalization
====================

Turns raw program text into numbered, normalized source lines for the
assembler passes.

Normalization rules:
    - Everything from the comment marker '#' to the end of the line is
      dropped.
    - Leading and trailing whitespace is trimmed.
    - Lines that end up empty are kept (so line numbers stay aligned with
      the input) but carry an empty `code` and occupy no address.

The assembler enforces fixed source limits: at most MAX_LINES
lines of at most MAX_LINE_LENGTH characters each.
"""

from dataclasses import dataclass
from typing import Iterable

from svm_sdk.errors import SourceLimitError, SourceLocation


COMMENT_CHAR = "#"
MAX_LINE_LENGTH = 100
MAX_LINES = 1024


@dataclass(frozen=True)
class SourceLine:
    """
    One line of program text.

    Attributes:
        number: Line number (1-indexed)
        text: Raw line text without the line terminator
        code: Normalized text (comment stripped, trimmed)
        filename: Name used in diagnostics
    """
    number: int
    text: str
    code: str
    filename: str = "<input>"

    @property
    def is_blank(self) -> bool:
        return not self.code

    def location(self, column: int = 1) -> SourceLocation:
        return SourceLocation(self.filename, self.number, column)

    def column_of(self, fragment: str) -> int:
        """Return the 1-indexed column of a fragment in the raw text."""
        index = self.text.find(fragment) if fragment else -1
        return index + 1 if index >= 0 else 1


def normalize_line(text: str) -> str:
    """Strip a trailing comment and surrounding whitespace."""
    comment = text.find(COMMENT_CHAR)
    if comment >= 0:
        text = text[:comment]
    return text.strip()


def read_source(lines: Iterable[str], filename: str = "<input>") -> list[SourceLine]:
    """
    Normalize a sequence of program lines.

    Args:
        lines: Program lines; trailing newlines are removed
        filename: Name used in diagnostics

    Returns:
        One SourceLine per input line, blank lines included

    Raises:
        SourceLimitError: If a line or the line count exceeds the limits
    """
    result: list[SourceLine] = []

    for number, raw in enumerate(lines, start=1):
        text = raw.rstrip("\r\n")

        if number > MAX_LINES:
            raise SourceLimitError(
                f"too many lines (limit is {MAX_LINES})",
                location=SourceLocation(filename, number),
            )

        if len(text) > MAX_LINE_LENGTH:
            raise SourceLimitError(
                f"line is {len(text)} characters long (limit is {MAX_LINE_LENGTH})",
                location=SourceLocation(filename, number, MAX_LINE_LENGTH + 1),
                source_line=text,
            )

        result.append(SourceLine(number, text, normalize_line(text), filename))

    return result


def split_source(source: str) -> list[str]:
    """Split program text into lines the way a line reader would."""
    return source.splitlines()
