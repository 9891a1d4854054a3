import re
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from ynap.errors import RuleActionRejectedError, SchemaValidationError
from ynap.template import check_template

# Fields that rules may read but never overwrite.
PROTECTED_FIELDS = frozenset({"date", "amount"})


class ColumnKind(str, Enum):
    DATE = "date"
    PAYEE = "payee"
    CATEGORY = "category"
    MEMO = "memo"
    INFLOW = "inflow"
    OUTFLOW = "outflow"
    EXTRA = "extra"
    IGNORE = "ignore"
    CDFLAG = "cdflag"


AMOUNT_KINDS = frozenset({ColumnKind.INFLOW, ColumnKind.OUTFLOW})
# At most one column of each of these kinds per schema.
SINGLE_KINDS = frozenset({
    ColumnKind.DATE, ColumnKind.PAYEE, ColumnKind.CATEGORY,
    ColumnKind.MEMO, ColumnKind.CDFLAG,
})


@dataclass(frozen=True)
class NumberFormat:
    decimal: str = "."
    thousands: str | None = ","

    def __post_init__(self):
        if len(self.decimal) != 1:
            raise SchemaValidationError(f"Decimal separator must be one character, got {self.decimal!r}")
        if self.thousands is not None and len(self.thousands) != 1:
            raise SchemaValidationError(f"Thousands separator must be one character, got {self.thousands!r}")
        if self.thousands == self.decimal:
            raise SchemaValidationError("Decimal and thousands separators must differ")

    @classmethod
    def named(cls, name: str) -> "NumberFormat":
        """Return one of the named presets: ``comma`` or ``period``."""
        presets = {
            "comma": cls(decimal=",", thousands="."),
            "period": cls(decimal=".", thousands=","),
        }
        if name not in presets:
            raise SchemaValidationError(f"Unknown number format: {name!r} (expected comma or period)")
        return presets[name]


@dataclass(frozen=True)
class ColumnSpec:
    kind: ColumnKind
    date_format: str | None = None  # date
    number_format: NumberFormat | None = None  # inflow, outflow
    key: str | None = None  # extra
    debit_marker: str | None = None  # cdflag

    def __post_init__(self):
        if self.kind == ColumnKind.DATE and not self.date_format:
            raise SchemaValidationError("Date column requires a date format")
        if self.kind in AMOUNT_KINDS and self.number_format is None:
            raise SchemaValidationError(f"{self.kind.value} column requires a number format")
        if self.kind == ColumnKind.EXTRA and not self.key:
            raise SchemaValidationError("Extra column requires a non-empty key")
        if self.kind == ColumnKind.CDFLAG and not self.debit_marker:
            raise SchemaValidationError("cdflag column requires a non-empty debit marker")

    @classmethod
    def date(cls, fmt: str) -> "ColumnSpec":
        return cls(ColumnKind.DATE, date_format=fmt)

    @classmethod
    def inflow(cls, fmt: NumberFormat | str = "period") -> "ColumnSpec":
        if isinstance(fmt, str):
            fmt = NumberFormat.named(fmt)
        return cls(ColumnKind.INFLOW, number_format=fmt)

    @classmethod
    def outflow(cls, fmt: NumberFormat | str = "period") -> "ColumnSpec":
        if isinstance(fmt, str):
            fmt = NumberFormat.named(fmt)
        return cls(ColumnKind.OUTFLOW, number_format=fmt)

    @classmethod
    def extra(cls, key: str) -> "ColumnSpec":
        return cls(ColumnKind.EXTRA, key=key)

    @classmethod
    def cdflag(cls, marker: str) -> "ColumnSpec":
        return cls(ColumnKind.CDFLAG, debit_marker=marker)


@dataclass(frozen=True)
class BankSchema:
    """Column layout and file quirks of one bank's CSV export."""
    name: str
    columns: tuple[ColumnSpec, ...]
    delimiter: str = ","
    ignore_header_rows: int = 0
    ignore_patterns: tuple[re.Pattern, ...] = ()
    file_pattern: re.Pattern | None = None
    rule_files: tuple[Path, ...] = ()

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if len(self.delimiter) != 1:
            raise SchemaValidationError(f"{self.name}: delimiter must be a single character, got {self.delimiter!r}")
        if self.ignore_header_rows < 0:
            raise SchemaValidationError(f"{self.name}: ignore_header_rows cannot be negative")
        if not self.columns:
            raise SchemaValidationError(f"{self.name}: schema has no columns")

        counts: dict[ColumnKind, int] = {}
        extra_keys: set[str] = set()
        for col in self.columns:
            counts[col.kind] = counts.get(col.kind, 0) + 1
            if col.kind == ColumnKind.EXTRA:
                if col.key in extra_keys:
                    raise SchemaValidationError(f"{self.name}: duplicate extra key {col.key!r}")
                extra_keys.add(col.key)

        for kind in SINGLE_KINDS:
            if counts.get(kind, 0) > 1:
                raise SchemaValidationError(f"{self.name}: more than one {kind.value} column")
        if counts.get(ColumnKind.DATE, 0) == 0:
            raise SchemaValidationError(f"{self.name}: schema has no date column")
        amount_columns = sum(counts.get(k, 0) for k in AMOUNT_KINDS)
        if amount_columns == 0:
            raise SchemaValidationError(f"{self.name}: schema has no inflow or outflow column")
        if counts.get(ColumnKind.CDFLAG) and amount_columns > 1:
            raise SchemaValidationError(f"{self.name}: a cdflag column needs exactly one amount column")


@dataclass(frozen=True)
class RawRow:
    line_number: int  # 1-based, counted over the whole input
    fields: tuple[str, ...]


@dataclass(frozen=True)
class Transaction:
    date: date
    payee: str
    memo: str
    amount: Decimal  # negative = outflow, positive = inflow
    category: str = ""
    extra: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    def get(self, key: str) -> str | None:
        """Return a field as text; unknown keys look in ``extra``."""
        if key == "date":
            return self.date.isoformat()
        if key == "amount":
            return str(self.amount)
        if key in ("payee", "memo", "category"):
            return getattr(self, key)
        return self.extra.get(key)

    def with_field(self, key: str, value: str) -> "Transaction":
        if key in PROTECTED_FIELDS:
            raise RuleActionRejectedError(f"Field {key!r} cannot be changed by rules")
        if key in ("payee", "memo", "category"):
            return replace(self, **{key: value})
        return replace(self, extra={**self.extra, key: value})


class ActionKind(str, Enum):
    SET = "set"
    ALIAS = "alias"
    DROP = "drop"
    STOP = "stop"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    field: str | None = None  # set
    value: str | None = None  # set; may contain ${...} placeholders
    aliases: tuple[tuple[str, tuple[re.Pattern, ...]], ...] = ()  # alias

    def __post_init__(self):
        if self.kind == ActionKind.SET:
            if not self.field:
                raise SchemaValidationError("set action requires a field")
            if self.field in PROTECTED_FIELDS:
                raise RuleActionRejectedError(f"Rules may not change {self.field!r}")
            check_template(self.value or "")

    @classmethod
    def set(cls, field: str, value: str) -> "Action":
        return cls(ActionKind.SET, field=field, value=value)


@dataclass(frozen=True)
class Rule:
    label: str | None
    conditions: tuple[tuple[str, re.Pattern], ...]
    actions: tuple[Action, ...]


@dataclass(frozen=True)
class RuleSet:
    rules: tuple[Rule, ...] = ()

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self):
        return iter(self.rules)

    @classmethod
    def concat(cls, *sets: "RuleSet") -> "RuleSet":
        return cls(tuple(rule for s in sets for rule in s.rules))


@dataclass
class RuleFiring:
    index: int
    label: str | None
    changes: dict[str, tuple[str | None, str]] = field(default_factory=dict)


@dataclass
class MatchOutcome:
    fired: list[RuleFiring] = field(default_factory=list)
    dropped_by: int | None = None
    stopped_by: int | None = None

    @property
    def dropped(self) -> bool:
        return self.dropped_by is not None


class DiagnosticKind(str, Enum):
    MALFORMED_LINE = "malformed_line"
    DATE_PARSE = "date_parse"
    AMOUNT_PARSE = "amount_parse"
    AMBIGUOUS_AMOUNT = "ambiguous_amount"
    TEMPLATE = "template"
    DROPPED = "dropped"


@dataclass
class Diagnostic:
    line_number: int | None
    kind: DiagnosticKind
    cause: str
    rule_index: int | None = None


@dataclass
class ParseResult:
    """Output of one file: kept transactions, their rule outcomes, and per-row diagnostics."""
    schema_name: str
    transactions: list[Transaction] = field(default_factory=list)
    outcomes: list[MatchOutcome] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    source: str | None = None

    @property
    def failed(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind != DiagnosticKind.DROPPED]

    @property
    def dropped(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == DiagnosticKind.DROPPED]
