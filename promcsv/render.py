"""CSV rendering of flattened tables."""

import csv
import io
from typing import Sequence

from .errors import RenderError


def render_csv(table: Sequence[Sequence[str]], delimiter: str) -> str:
    """
    Render rows as delimited text.

    Cells containing the delimiter, a double quote or a line break are quoted
    with inner quotes doubled. Every row ends with "\\n". Short rows are
    written as they are.

    Raises:
        RenderError: If the writer fails; callers are not expected to recover
    """
    buf = io.StringIO()
    try:
        writer = csv.writer(
            buf,
            delimiter=delimiter,
            quotechar='"',
            doublequote=True,
            quoting=csv.QUOTE_MINIMAL,
            lineterminator="\n",
        )
        writer.writerows(table)
    except (csv.Error, TypeError) as e:
        raise RenderError(f"failed to render CSV: {e}") from e
    return buf.getvalue()
