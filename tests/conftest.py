import pytest

from ynap.models import BankSchema, ColumnSpec, ColumnKind


@pytest.fixture
def vr_schema():
    """The Volksbank layout, built in code with 16 header rows and no rule files."""
    ignore = ColumnSpec(ColumnKind.IGNORE)
    return BankSchema(
        name="Volksbank",
        delimiter=";",
        ignore_header_rows=16,
        columns=(
            ColumnSpec.date("%d.%m.%Y"),
            ignore,
            ColumnSpec.extra("transaction_type"),
            ignore,
            ColumnSpec(ColumnKind.PAYEE),
            ignore, ignore, ignore, ignore,
            ColumnSpec(ColumnKind.MEMO),
            ignore,
            ignore,
            ColumnSpec.inflow("comma"),
            ColumnSpec.cdflag("S"),
        ),
    )


@pytest.fixture
def split_schema():
    """Date, payee, memo, then separate inflow and outflow columns."""
    return BankSchema(
        name="Split",
        delimiter=",",
        ignore_header_rows=1,
        columns=(
            ColumnSpec.date("%Y-%m-%d"),
            ColumnSpec(ColumnKind.PAYEE),
            ColumnSpec(ColumnKind.MEMO),
            ColumnSpec.inflow("period"),
            ColumnSpec.outflow("period"),
        ),
    )
