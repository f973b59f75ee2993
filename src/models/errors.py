"""Typed exception hierarchy for conversion errors.

Malformed markup is never an error: the converter degrades it to visible
placeholders and warnings. The exceptions here only signal contract
violations by the caller (for example a record missing a required field).
"""


class ConverterError(Exception):
    """Base exception for all confluence-md errors.

    Use this to catch any application-level error from the converter.
    """
    pass


class InvalidRecordError(ConverterError):
    """Raised when a page or comment record violates its input contract."""

    def __init__(self, record_type: str, field_name: str, reason: str = "is required"):
        super().__init__(f"{record_type}.{field_name} {reason}")
        self.record_type = record_type
        self.field_name = field_name
        self.reason = reason
