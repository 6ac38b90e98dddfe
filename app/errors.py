class InvalidTimestampError(ValueError):
    """Timestamp text does not match the YYYY-MM-DDTHH:MM:SS.fffZ form."""


class QuoteIngestError(Exception):
    """Quote source could not be turned into a complete QuoteStore."""
