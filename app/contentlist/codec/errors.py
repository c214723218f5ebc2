"""Exceptions raised by the manifest codec."""


class ManifestParseError(ValueError):
    """Raised when a manifest record cannot be decoded.

    Attributes:
        record: 1-based ordinal of the offending record (the header is 1).
        reason: Description of the problem.
    """

    def __init__(self, record: int, reason: str) -> None:
        self.record = record
        self.reason = reason
        super().__init__(f"Record {record}: {reason}")
