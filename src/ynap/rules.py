import re
from typing import Mapping, Sequence

from ynap.errors import SchemaValidationError
from ynap.logging_setup import get_logger
from ynap.models import Action, ActionKind, MatchOutcome, Rule, RuleFiring, RuleSet, Transaction
from ynap.template import interpolate

logger = get_logger(__name__)


def _compile(pattern: str, flags: int = 0) -> re.Pattern:
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise SchemaValidationError(f"Invalid regular expression {pattern!r}: {e}") from None


def maybe_escape(pattern: str) -> str:
    """Patterns written as ``^...$`` are regexes; anything else is a literal."""
    if pattern.startswith("^") and pattern.endswith("$"):
        return pattern
    return re.escape(pattern)


def build_rule(
    match: Mapping[str, str] | None = None,
    replace: Mapping[str, str] | None = None,
    label: str | None = None,
    drop: bool = False,
    stop: bool = False,
) -> Rule:
    """Build a Rule from field->regex conditions and field->template replacements."""
    conditions = tuple((str(k), _compile(str(v))) for k, v in (match or {}).items())
    actions = [Action.set(k, "" if v is None else str(v)) for k, v in (replace or {}).items()]
    if drop:
        actions.append(Action(ActionKind.DROP))
    if stop:
        actions.append(Action(ActionKind.STOP))
    if not actions:
        raise SchemaValidationError(f"Rule {label or dict(match or {})!r} has no actions")
    return Rule(label=label, conditions=conditions, actions=tuple(actions))


def build_alias_rule(payees: Mapping[str, Sequence[str]], case_insensitive: bool = True) -> Rule | None:
    """Build one rule renaming payees to canonical names; the first matching alias wins."""
    if not payees:
        return None
    flags = re.IGNORECASE if case_insensitive else 0
    aliases = []
    alternatives = []
    for name, patterns in payees.items():
        if isinstance(patterns, str):
            patterns = [patterns]
        escaped = [maybe_escape(str(p)) for p in patterns]
        aliases.append((str(name), tuple(_compile(p, flags) for p in escaped)))
        alternatives.extend(f"(?:{p})" for p in escaped)
    condition = ("payee", _compile("|".join(alternatives), flags))
    return Rule(
        label="payees",
        conditions=(condition,),
        actions=(Action(ActionKind.ALIAS, aliases=tuple(aliases)),),
    )


def match_rule(rule: Rule, txn: Transaction) -> dict[str, str] | None:
    """Return the named captures of ``rule`` against ``txn``, or None if it does not match."""
    captures: dict[str, str] = {}
    for field_name, pattern in rule.conditions:
        value = txn.get(field_name)
        if value is None:
            return None
        m = pattern.search(value)
        if m is None:
            return None
        captures.update({k: v for k, v in m.groupdict().items() if v is not None})
    return captures


def _lookup(captures: dict[str, str], txn: Transaction):
    def lookup(key: str) -> str:
        if key in captures:
            return captures[key]
        value = txn.get(key)
        return value if value is not None else ""
    return lookup


def _assign(txn: Transaction, firing: RuleFiring, key: str, value: str) -> Transaction:
    old = txn.get(key)
    if old != value:
        previous = firing.changes.get(key, (old, value))[0]
        firing.changes[key] = (previous, value)
    return txn.with_field(key, value)


def apply_rules(txn: Transaction, ruleset: RuleSet | None) -> tuple[Transaction, MatchOutcome]:
    """Fold ``ruleset`` over ``txn`` in order; each rule sees the edits of the ones before it."""
    outcome = MatchOutcome()
    if not ruleset:
        return txn, outcome

    for index, rule in enumerate(ruleset):
        captures = match_rule(rule, txn)
        if captures is None:
            continue
        firing = RuleFiring(index=index, label=rule.label)
        outcome.fired.append(firing)
        logger.debug("rule %d (%s) matched %r", index, rule.label or "-", txn.payee)

        for action in rule.actions:
            if action.kind == ActionKind.SET:
                value = interpolate(action.value, _lookup(captures, txn))
                txn = _assign(txn, firing, action.field, value)
            elif action.kind == ActionKind.ALIAS:
                for name, patterns in action.aliases:
                    if any(p.search(txn.payee) for p in patterns):
                        txn = _assign(txn, firing, "payee", name)
                        break
            elif action.kind == ActionKind.DROP:
                outcome.dropped_by = index
                return txn, outcome
            elif action.kind == ActionKind.STOP:
                outcome.stopped_by = index

        if outcome.stopped_by is not None:
            break

    return txn, outcome
