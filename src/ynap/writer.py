import csv
from typing import IO, Iterable

from ynap.models import Transaction

YNAB_HEADER = ["Date", "Payee", "Category", "Memo", "Amount"]


def to_ynab_row(txn: Transaction) -> list[str]:
    return [txn.date.isoformat(), txn.payee, txn.category, txn.memo, str(txn.amount)]


def write_ynab_csv(transactions: Iterable[Transaction], stream: IO[str]) -> int:
    """Write transactions as a YNAB import CSV. Returns the number of rows written."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(YNAB_HEADER)
    count = 0
    for txn in transactions:
        writer.writerow(to_ynab_row(txn))
        count += 1
    return count
