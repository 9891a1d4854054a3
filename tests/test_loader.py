from pathlib import Path

import pytest

from ynap.errors import RuleActionRejectedError, SchemaValidationError
from ynap.loader import load_rule_files, load_rules, load_schema, parse_number_format, schema_from_dict
from ynap.models import ActionKind, ColumnKind, NumberFormat

BANKS = Path(__file__).parent.parent / "banks"

MINIMAL = {
    "name": "Minimal",
    "delimiter": ",",
    "columns": [{"type": "date", "args": "%Y-%m-%d"}, {"type": "payee"}, {"type": "inflow", "args": "period"}],
}


def test_load_shipped_volksbank_schema():
    schema = load_schema(BANKS / "vr.yaml")
    assert schema.name == "Volksbanken / Girokonto"
    assert schema.delimiter == ";"
    assert schema.ignore_header_rows == 16
    assert len(schema.columns) == 14
    assert schema.columns[0].date_format == "%d.%m.%Y"
    assert schema.columns[2].key == "transaction_type"
    assert schema.columns[12].number_format == NumberFormat(",", ".")
    assert schema.columns[13].debit_marker == "S"
    assert len(schema.ignore_patterns) == 2
    assert schema.file_pattern.search("Umsaetze_DE12345678901234567890_2024.01.31.csv")
    assert schema.rule_files == ((BANKS / "rules.yaml").resolve(),)


def test_load_shipped_rules():
    rules = load_rules(BANKS / "rules.yaml")
    assert [r.label for r in rules] == [
        "card payments carry the merchant in the memo", "bank fees", "payees", "internal transfers",
    ]
    assert rules.rules[2].actions[0].kind == ActionKind.ALIAS
    assert rules.rules[3].actions[-1].kind == ActionKind.DROP


def test_column_shorthand_string():
    schema = schema_from_dict({**MINIMAL, "columns": ["ignore", *MINIMAL["columns"]]})
    assert schema.columns[0].kind == ColumnKind.IGNORE


def test_number_format_mapping():
    assert parse_number_format({"decimal": ",", "thousands": None}) == NumberFormat(",", None)
    assert parse_number_format(None) == NumberFormat(".", ",")
    with pytest.raises(SchemaValidationError):
        parse_number_format("dot")


def test_duplicate_extra_key_rejected():
    columns = MINIMAL["columns"] + [{"type": "extra", "args": "ref"}, {"type": "extra", "args": "ref"}]
    with pytest.raises(SchemaValidationError, match="duplicate extra key"):
        schema_from_dict({**MINIMAL, "columns": columns})


@pytest.mark.parametrize("override, message", [
    ({"delimiter": ";;"}, "single character"),
    ({"columns": []}, "no columns"),
    ({"columns": [{"type": "payee"}, {"type": "inflow"}]}, "no date column"),
    ({"columns": [{"type": "date", "args": "%Y"}, {"type": "payee"}]}, "no inflow or outflow"),
    ({"columns": MINIMAL["columns"] + [{"type": "payee"}]}, "more than one payee"),
    ({"columns": [{"type": "date"}, {"type": "inflow"}]}, "date format"),
    ({"columns": MINIMAL["columns"] + [{"type": "cdflag"}]}, "debit marker"),
    ({"columns": MINIMAL["columns"] + [{"type": "outflow"}, {"type": "cdflag", "args": "D"}]}, "exactly one amount"),
    ({"columns": [{"type": "when"}]}, "Unknown column type"),
    ({"ignore_patterns": ["("]}, "Invalid ignore pattern"),
    ({"file_pattern": "[a-"}, "Invalid file pattern"),
    ({"ignore_header_rows": "many"}, "must be an integer"),
    ({"name": ""}, "no name"),
])
def test_schema_validation_errors(override, message):
    with pytest.raises(SchemaValidationError, match=message):
        schema_from_dict({**MINIMAL, **override})


def test_missing_bank_file(tmp_path):
    with pytest.raises(SchemaValidationError, match="not found"):
        load_schema(tmp_path / "nope.yaml")


def test_empty_rule_file_is_empty_ruleset(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("")
    assert len(load_rules(path)) == 0


def test_rule_targeting_amount_rejected_at_load(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("pre_transform:\n  - match: {payee: x}\n    replace: {amount: '0'}\n")
    with pytest.raises(RuleActionRejectedError):
        load_rules(path)


def test_invalid_template_command_rejected_at_load(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("post_transform:\n  - match: {payee: x}\n    replace: {payee: '${payee|shout}'}\n")
    with pytest.raises(SchemaValidationError, match="shout"):
        load_rules(path)


def test_rule_files_concatenate_in_order(tmp_path):
    first = tmp_path / "a.yaml"
    second = tmp_path / "b.yaml"
    first.write_text("pre_transform:\n  - label: one\n    match: {payee: x}\n    replace: {memo: a}\n")
    second.write_text("pre_transform:\n  - label: two\n    match: {payee: x}\n    replace: {memo: b}\n")
    rules = load_rule_files([second, first])
    assert [r.label for r in rules] == ["two", "one"]


def test_invalid_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("name: [unclosed\n")
    with pytest.raises(SchemaValidationError, match="Could not parse"):
        load_schema(path)
