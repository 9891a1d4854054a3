from decimal import Decimal
from typing import Sequence

from ynap.errors import AmbiguousAmountError, AmountParseError


def resolve_amount(
    inflows: Sequence[Decimal],
    outflows: Sequence[Decimal],
    is_debit: bool | None = None,
    line_number: int | None = None,
) -> Decimal:
    """Combine a row's amount columns into one signed amount.

    With a credit/debit flag (``is_debit`` is not None) the single amount
    value is taken as a magnitude and negated for debits. Without one,
    inflows are positive and outflows negative; a row may not carry both.
    """
    values = [*inflows, *outflows]
    if not values:
        raise AmountParseError("row has no amount", line_number=line_number)

    if is_debit is not None:
        nonzero = [v for v in values if v != 0]
        if len(nonzero) > 1:
            raise AmbiguousAmountError(
                f"several amount values with a credit/debit flag: {', '.join(map(str, nonzero))}",
                line_number=line_number,
            )
        magnitude = abs(nonzero[0] if nonzero else values[0])
        return -magnitude if is_debit else magnitude

    inflow = next((v for v in inflows if v != 0), None)
    outflow = next((v for v in outflows if v != 0), None)
    if inflow is not None and outflow is not None:
        raise AmbiguousAmountError(
            f"both inflow {inflow} and outflow {outflow} are set",
            line_number=line_number,
        )
    if inflow is not None:
        return inflow
    if outflow is not None:
        return -outflow
    # Only zero values present
    return abs(values[0])
