from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Iterator

from ynap.amounts import resolve_amount
from ynap.errors import RowError, SchemaValidationError
from ynap.interpreter import interpret_row
from ynap.loader import load_rule_files
from ynap.logging_setup import get_logger
from ynap.models import (
    BankSchema, Diagnostic, DiagnosticKind, MatchOutcome, ParseResult, RawRow, RuleSet, Transaction,
)
from ynap.registry import SchemaRegistry
from ynap.rules import apply_rules
from ynap.tokenizer import tokenize

logger = get_logger(__name__)


def draft_transaction(row: RawRow, schema: BankSchema) -> Transaction:
    """Interpret one row and resolve its amount, before any rule runs."""
    draft = interpret_row(row, schema.columns)
    amount = resolve_amount(draft.inflows, draft.outflows, draft.is_debit, row.line_number)
    return Transaction(
        date=draft.date,
        payee=draft.payee,
        memo=draft.memo,
        amount=amount,
        category=draft.category,
        extra=draft.extra,
    )


def iter_results(
    text: str,
    schema: BankSchema,
    ruleset: RuleSet | None = None,
) -> Iterator[tuple[Transaction, MatchOutcome] | Diagnostic]:
    """Lazily yield a (transaction, outcome) pair or a Diagnostic for every data row."""
    rows = tokenize(text, schema.delimiter, schema.ignore_header_rows, schema.ignore_patterns)
    for row in rows:
        try:
            txn, outcome = apply_rules(draft_transaction(row, schema), ruleset)
        except RowError as e:
            if e.line_number is None:
                e.line_number = row.line_number
            logger.warning("%s", e)
            yield Diagnostic(row.line_number, DiagnosticKind(e.kind), e.message)
            continue

        if outcome.dropped:
            rule = ruleset.rules[outcome.dropped_by]
            yield Diagnostic(
                row.line_number,
                DiagnosticKind.DROPPED,
                f"dropped by rule {outcome.dropped_by}" + (f" ({rule.label})" if rule.label else ""),
                rule_index=outcome.dropped_by,
            )
            continue
        yield txn, outcome


def parse_text(
    text: str,
    schema: BankSchema,
    ruleset: RuleSet | None = None,
    source: str | None = None,
) -> ParseResult:
    result = ParseResult(schema_name=schema.name, source=source)
    for item in iter_results(text, schema, ruleset):
        if isinstance(item, Diagnostic):
            result.diagnostics.append(item)
        else:
            txn, outcome = item
            result.transactions.append(txn)
            result.outcomes.append(outcome)
    logger.info(
        "%s: %d transactions, %d failed, %d dropped",
        source or schema.name, len(result.transactions), len(result.failed), len(result.dropped),
    )
    return result


def read_text(file_path: Path) -> str:
    """Decode a bank export: UTF-8 (with or without BOM), falling back to ISO-8859-1."""
    data = Path(file_path).read_bytes()
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug("%s is not UTF-8, decoding as ISO-8859-1", file_path)
        return data.decode("iso-8859-1")


def rules_for_schema(schema: BankSchema) -> RuleSet:
    return load_rule_files(schema.rule_files)


def parse_file(file_path: Path, schema: BankSchema, ruleset: RuleSet | None = None) -> ParseResult:
    """Parse one file; without an explicit ruleset the schema's own rule files apply."""
    if ruleset is None:
        ruleset = rules_for_schema(schema)
    return parse_text(read_text(file_path), schema, ruleset, source=Path(file_path).name)


def parse_files(
    paths: Iterable[Path],
    registry: SchemaRegistry,
    workers: int = 4,
    schema: BankSchema | None = None,
    ruleset: RuleSet | None = None,
) -> list[ParseResult]:
    """Parse independent files in parallel, returning results in input order.

    Schemas and rule sets are resolved for every file before any row is read,
    so configuration errors surface up front.
    """
    if workers < 1:
        raise ValueError("workers must be a positive integer")

    jobs: list[tuple[Path, BankSchema, RuleSet]] = []
    rule_cache: dict[str, RuleSet] = {}
    for path in paths:
        path = Path(path)
        file_schema = schema or registry.get_for_file(path)
        if file_schema is None:
            raise SchemaValidationError(f"No bank schema matches {path.name}")
        if ruleset is not None:
            file_rules = ruleset
        else:
            if file_schema.name not in rule_cache:
                rule_cache[file_schema.name] = rules_for_schema(file_schema)
            file_rules = rule_cache[file_schema.name]
        jobs.append((path, file_schema, file_rules))

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(lambda job: parse_file(*job), jobs))
