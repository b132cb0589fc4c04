# core/errors.py


class ImpressionsError(Exception):
    """Base class for failures while processing an impressions request."""


class DecodeError(ImpressionsError):
    """The request body could not be read or decompressed."""


class ParseError(ImpressionsError):
    """The decoded body is not a JSON array of impressions."""


class EmptyBatchError(ImpressionsError):
    """The payload was valid but carried no impressions."""


class PersistenceError(ImpressionsError):
    """Schema check, table creation or insert failed."""
