import re
from dataclasses import dataclass, field
from datetime import date as date_cls, datetime
from decimal import Decimal, InvalidOperation

from ynap.errors import AmountParseError, DateParseError, MalformedLineError
from ynap.models import ColumnKind, ColumnSpec, NumberFormat, RawRow

CENTS = Decimal("0.01")


def _number_pattern(fmt: NumberFormat) -> str:
    # Thousands separators are only accepted between complete 3-digit groups
    integer = r"\d+"
    if fmt.thousands is not None:
        integer = rf"(?:\d{{1,3}}(?:{re.escape(fmt.thousands)}\d{{3}})+|\d+)"
    return rf"[+-]?{integer}(?:{re.escape(fmt.decimal)}\d+)?"


def parse_amount(raw: str, fmt: NumberFormat) -> Decimal | None:
    """Parse a locale-formatted number into a Decimal; empty text means no value.

    The result keeps every fractional digit of the source and at least two.
    """
    text = raw.strip()
    if not text:
        return None
    if not re.fullmatch(_number_pattern(fmt), text):
        raise AmountParseError(f"not a number: {raw!r}")
    if fmt.thousands is not None:
        text = text.replace(fmt.thousands, "")
    text = text.replace(fmt.decimal, ".")
    try:
        value = Decimal(text)
        if value.as_tuple().exponent > -2:
            value = value.quantize(CENTS)
    except InvalidOperation:
        raise AmountParseError(f"amount out of range: {raw!r}") from None
    return value


def parse_date(raw: str, fmt: str) -> date_cls:
    try:
        return datetime.strptime(raw.strip(), fmt).date()
    except ValueError:
        raise DateParseError(f"date {raw!r} does not match format {fmt!r}") from None


@dataclass
class Draft:
    """A row after column interpretation, before the amount is resolved."""
    line_number: int
    date: date_cls | None = None
    payee: str = ""
    memo: str = ""
    category: str = ""
    extra: dict[str, str] = field(default_factory=dict)
    inflows: list[Decimal] = field(default_factory=list)
    outflows: list[Decimal] = field(default_factory=list)
    is_debit: bool | None = None  # None when the schema has no cdflag column


def interpret_row(row: RawRow, columns: tuple[ColumnSpec, ...]) -> Draft:
    """Interpret ``row`` field by field according to the positional ``columns``."""
    if len(row.fields) != len(columns):
        raise MalformedLineError(
            f"expected {len(columns)} fields, found {len(row.fields)}",
            line_number=row.line_number,
        )

    draft = Draft(line_number=row.line_number)
    for value, col in zip(row.fields, columns):
        try:
            _interpret_field(draft, value, col)
        except (DateParseError, AmountParseError) as e:
            e.line_number = row.line_number
            raise
    return draft


def _interpret_field(draft: Draft, value: str, col: ColumnSpec) -> None:
    kind = col.kind
    if kind == ColumnKind.IGNORE:
        return
    if kind == ColumnKind.DATE:
        draft.date = parse_date(value, col.date_format)
    elif kind == ColumnKind.PAYEE:
        draft.payee = value.strip()
    elif kind == ColumnKind.MEMO:
        draft.memo = value.strip()
    elif kind == ColumnKind.CATEGORY:
        draft.category = value.strip()
    elif kind == ColumnKind.EXTRA:
        draft.extra[col.key] = value.strip()
    elif kind == ColumnKind.INFLOW:
        amount = parse_amount(value, col.number_format)
        if amount is not None:
            draft.inflows.append(amount)
    elif kind == ColumnKind.OUTFLOW:
        amount = parse_amount(value, col.number_format)
        if amount is not None:
            draft.outflows.append(amount)
    elif kind == ColumnKind.CDFLAG:
        # Case-sensitive match against the configured debit marker
        draft.is_debit = value.strip() == col.debit_marker
    else:
        raise ValueError(f"Unhandled column kind: {kind}")
