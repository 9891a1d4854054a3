class YnapError(Exception):
    """Base class for every error raised by ynap."""


class RowError(YnapError):
    """A single input row could not be turned into a transaction."""

    kind = "row_error"

    def __init__(self, message: str, line_number: int | None = None):
        super().__init__(message)
        self.message = message
        self.line_number = line_number

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return f"line {self.line_number}: {self.message}"


class MalformedLineError(RowError):
    kind = "malformed_line"


class DateParseError(RowError):
    kind = "date_parse"


class AmountParseError(RowError):
    kind = "amount_parse"


class AmbiguousAmountError(RowError):
    kind = "ambiguous_amount"


class TemplateError(RowError):
    kind = "template"


class SchemaValidationError(YnapError):
    """A bank schema or rule file is inconsistent. Raised before any row is read."""


class RuleActionRejectedError(SchemaValidationError):
    """A rule tries to overwrite a protected field (date or amount)."""
