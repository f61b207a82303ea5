"""
Horizontal text alignment for multi-line block strings.
"""

from enum import Enum

from blocktext.errors import OutOfRangeError


class Alignment(Enum):
    """Left, center or right alignment of each line within the string width.

    Only noticeable on multi-line strings, a single line is always as wide
    as the whole string.
    """

    LEFT = 0
    CENTER = 1
    RIGHT = 2

    @classmethod
    def of(cls, value: 'str | int') -> 'Alignment | None':
        """Returns the Alignment for a user supplied name or ordinal.

        Names match case-insensitively by prefix so 'c' and 'Ce' both give
        CENTER. An unmatched name returns None, an ordinal outside 0..2 raises
        OutOfRangeError.
        """
        if isinstance(value, bool):
            raise TypeError(f"Expected str or int, got {value!r}")
        if isinstance(value, int):
            members = list(cls)
            if not 0 <= value < len(members):
                raise OutOfRangeError(
                    f"Alignment ordinal {value} not in range [0, {len(members) - 1}]")
            return members[value]
        folded = str(value).casefold()
        for alignment in cls:
            if alignment.name.casefold().startswith(folded):
                return alignment
        return None

    def line_offset(self, width: int, line_width: int) -> int:
        """Horizontal start of a line of line_width inside a string of width."""
        if self is Alignment.CENTER:
            return width // 2 - line_width // 2
        if self is Alignment.RIGHT:
            return width - line_width
        return 0
