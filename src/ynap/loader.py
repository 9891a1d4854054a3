"""Load bank schemas and rule sets from YAML files.

A bank file looks like::

    name: Volksbanken / Girokonto
    file_pattern: 'Umsaetze_.*\\.csv'
    ignore_header_rows: 16
    ignore_patterns: ['^;;;;;;;;;;;;;$']
    delimiter: ';'
    columns:
      - { type: date, args: "%d.%m.%Y" }
      - { type: payee }
      - { type: inflow, args: comma }
      - { type: cdflag, args: "S" }
    rule_files: [./rules.yaml]

A rule file has optional ``pre_transform``, ``payees`` and ``post_transform``
sections, applied in that order.
"""
import re
from pathlib import Path
from typing import Any, Iterable

import yaml

from ynap.errors import SchemaValidationError
from ynap.models import BankSchema, ColumnKind, ColumnSpec, NumberFormat, RuleSet
from ynap.rules import build_alias_rule, build_rule


def read_yaml(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8-sig") as f:
            return yaml.safe_load(f)
    except FileNotFoundError:
        raise SchemaValidationError(f"File not found: {path}") from None
    except yaml.YAMLError as e:
        raise SchemaValidationError(f"Could not parse YAML in {path}: {e}") from None


def _regex(pattern: Any, what: str) -> re.Pattern:
    if not isinstance(pattern, str):
        raise SchemaValidationError(f"{what} must be a string, got {pattern!r}")
    try:
        return re.compile(pattern)
    except re.error as e:
        raise SchemaValidationError(f"Invalid {what} {pattern!r}: {e}") from None


def parse_number_format(args: Any) -> NumberFormat:
    if args is None:
        return NumberFormat.named("period")
    if isinstance(args, str):
        return NumberFormat.named(args)
    if isinstance(args, dict):
        return NumberFormat(
            decimal=str(args.get("decimal", ".")),
            thousands=args.get("thousands", ","),
        )
    raise SchemaValidationError(f"Invalid number format: {args!r}")


def parse_column(raw: Any) -> ColumnSpec:
    if isinstance(raw, str):
        raw = {"type": raw}
    if not isinstance(raw, dict) or "type" not in raw:
        raise SchemaValidationError(f"Column must be a mapping with a 'type': {raw!r}")
    try:
        kind = ColumnKind(raw["type"])
    except ValueError:
        raise SchemaValidationError(f"Unknown column type: {raw['type']!r}") from None
    args = raw.get("args")

    if kind == ColumnKind.DATE:
        return ColumnSpec(kind, date_format=args)
    if kind in (ColumnKind.INFLOW, ColumnKind.OUTFLOW):
        return ColumnSpec(kind, number_format=parse_number_format(args))
    if kind == ColumnKind.EXTRA:
        return ColumnSpec(kind, key=None if args is None else str(args))
    if kind == ColumnKind.CDFLAG:
        return ColumnSpec(kind, debit_marker=None if args is None else str(args))
    return ColumnSpec(kind)


def schema_from_dict(data: dict, base_dir: Path | None = None) -> BankSchema:
    """Build a validated BankSchema from already-deserialized YAML."""
    if not isinstance(data, dict):
        raise SchemaValidationError("Bank file must contain a mapping")
    if not data.get("name"):
        raise SchemaValidationError("Bank file has no name")
    name = str(data["name"])

    file_pattern = data.get("file_pattern")
    base_dir = base_dir or Path(".")
    rule_files = data.get("rule_files") or []
    if isinstance(rule_files, str):
        rule_files = [rule_files]

    try:
        header_rows = int(data.get("ignore_header_rows") or 0)
    except (TypeError, ValueError):
        raise SchemaValidationError(f"{name}: ignore_header_rows must be an integer") from None

    return BankSchema(
        name=name,
        columns=tuple(parse_column(c) for c in data.get("columns") or []),
        delimiter=str(data.get("delimiter", ",")),
        ignore_header_rows=header_rows,
        ignore_patterns=tuple(_regex(p, "ignore pattern") for p in data.get("ignore_patterns") or []),
        file_pattern=_regex(file_pattern, "file pattern") if file_pattern else None,
        rule_files=tuple((base_dir / p).resolve() for p in rule_files),
    )


def load_schema(path: Path) -> BankSchema:
    path = Path(path)
    return schema_from_dict(read_yaml(path), base_dir=path.parent)


def ruleset_from_dict(data: dict | None) -> RuleSet:
    if data is None:
        return RuleSet()
    if not isinstance(data, dict):
        raise SchemaValidationError("Rule file must contain a mapping")

    rules = []
    for section in ("pre_transform", "payees", "post_transform"):
        entries = data.get(section)
        if not entries:
            continue
        if section == "payees":
            if not isinstance(entries, dict):
                raise SchemaValidationError("payees must map a name to a list of patterns")
            rules.append(build_alias_rule(entries))
            continue
        for entry in entries:
            if not isinstance(entry, dict):
                raise SchemaValidationError(f"Invalid {section} entry: {entry!r}")
            rules.append(build_rule(
                match=entry.get("match"),
                replace=entry.get("replace"),
                label=entry.get("label"),
                drop=bool(entry.get("drop", False)),
                stop=bool(entry.get("stop", False)),
            ))
    return RuleSet(tuple(rules))


def load_rules(path: Path) -> RuleSet:
    return ruleset_from_dict(read_yaml(Path(path)))


def load_rule_files(paths: Iterable[Path]) -> RuleSet:
    """Load and concatenate rule files in the order given."""
    return RuleSet.concat(*(load_rules(p) for p in paths))
