"""``${name}`` / ``${name|command}`` placeholders used in rule replacement values."""
import re
from typing import Callable

from ynap.errors import SchemaValidationError, TemplateError

PLACEHOLDER = re.compile(r"\$\{(\w+)(?:\|(\w+))?\}")


def _title_case(value: str) -> str:
    words = re.split(r"[\s_\-]+", value.strip())
    return " ".join(w[:1].upper() + w[1:].lower() for w in words if w)


COMMANDS: dict[str, Callable[[str], str]] = {
    "title_case": _title_case,
    "lowercase": str.lower,
    "uppercase": str.upper,
}


def check_template(tmpl: str) -> None:
    """Raise SchemaValidationError if ``tmpl`` uses an unknown command."""
    for m in PLACEHOLDER.finditer(tmpl):
        command = m.group(2)
        if command is not None and command != "not_empty" and command not in COMMANDS:
            raise SchemaValidationError(f"Invalid template command: {command!r} in {tmpl!r}")


def interpolate(tmpl: str, lookup: Callable[[str], str]) -> str:
    """Replace each placeholder in ``tmpl`` with ``lookup(name)``, applying its command."""

    def _sub(m: re.Match) -> str:
        key, command = m.group(1), m.group(2)
        value = lookup(key)
        if command is None:
            return value
        if command == "not_empty":
            if not value:
                raise TemplateError(f"value of key {key} cannot be empty")
            return value
        if command not in COMMANDS:
            raise SchemaValidationError(f"Invalid template command: {command!r}")
        return COMMANDS[command](value)

    return PLACEHOLDER.sub(_sub, tmpl)
