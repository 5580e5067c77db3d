"""
Text helpers shared by the result renderers.
"""

import csv
import io
from decimal import Decimal
from typing import Iterable, Sequence

INVALID_DELIMITERS = ('"', "\r", "\n")
LABEL_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}


def validate_delimiter(delimiter: str) -> str:
    """Check that ``delimiter`` is usable as a CSV field separator."""
    if not isinstance(delimiter, str) or len(delimiter) != 1:
        raise ValueError(f"Delimiter must be a single character, got {delimiter!r}")
    if delimiter in INVALID_DELIMITERS:
        raise ValueError(f"Invalid delimiter {delimiter!r}")
    return delimiter


def format_csv(rows: Iterable[Sequence[str]], delimiter: str = ",") -> str:
    """
    Format rows as delimited text.

    Fields containing the delimiter, a double quote or a line break are
    quoted and embedded quotes are doubled. Rows end with ``\\n``.

    Args:
        rows: Rows of string fields
        delimiter: Single-character field separator

    Returns:
        The rendered rows
    """
    validate_delimiter(delimiter)
    buf = io.StringIO()
    options = dict(delimiter=delimiter, quotechar='"', doublequote=True, lineterminator="\n")
    minimal = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, **options)
    quote_all = csv.writer(buf, quoting=csv.QUOTE_ALL, **options)
    for row in rows:
        row = list(row)
        # QUOTE_MINIMAL leaves a bare \r unquoted when it is not in lineterminator
        if any("\r" in field for field in row):
            quote_all.writerow(row)
        else:
            minimal.writerow(row)
    return buf.getvalue()


def format_timestamp(timestamp: float) -> str:
    """Render a timestamp with millisecond precision (``1.500`` style)."""
    return f"{timestamp:.3f}"


def format_shortest(value: float) -> str:
    """
    Render a float as the shortest decimal that round-trips, without exponent.

    Integral values drop the fractional part: ``0.0`` renders as ``0`` and
    ``1e16`` as ``10000000000000000``.
    """
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def quote_label_value(value: str) -> str:
    """Quote a label value, escaping backslashes, quotes and control whitespace."""
    escaped = "".join(LABEL_ESCAPES.get(c, c) for c in value)
    return f'"{escaped}"'
