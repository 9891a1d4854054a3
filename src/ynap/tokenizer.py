import csv
import re
from typing import Iterable, Iterator

from ynap.logging_setup import get_logger
from ynap.models import RawRow

logger = get_logger(__name__)

# Only real line breaks; str.splitlines also breaks on \x85, \u2028 and friends
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def _split(line: str, delimiter: str) -> tuple[str, ...]:
    # csv handles quoted fields that contain the delimiter
    fields = next(csv.reader([line], delimiter=delimiter), [])
    return tuple(fields) if fields else ("",)


def tokenize(
    text: str,
    delimiter: str,
    ignore_header_rows: int = 0,
    ignore_patterns: Iterable[re.Pattern] = (),
) -> Iterator[RawRow]:
    """Yield one RawRow per data line of ``text``.

    The first ``ignore_header_rows`` lines are skipped whatever they contain.
    Lines matching any ignore pattern vanish without a trace. Blank lines at
    the end of the input are dropped; blank lines followed by more data are
    yielded and left for the interpreter to reject.
    """
    patterns = tuple(ignore_patterns)
    pending_blank: list[int] = []

    for line_number, line in enumerate(_LINE_BREAK.split(text), start=1):
        if line_number <= ignore_header_rows:
            continue
        if any(p.search(line) for p in patterns):
            logger.debug("line %d ignored by pattern", line_number)
            continue
        if not line.strip():
            pending_blank.append(line_number)
            continue
        for blank in pending_blank:
            yield RawRow(line_number=blank, fields=("",))
        pending_blank.clear()
        yield RawRow(line_number=line_number, fields=_split(line, delimiter))
