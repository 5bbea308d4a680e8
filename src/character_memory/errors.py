"""Exceptions raised by Character Memory."""


class MemoryManagerError(Exception):
    """Base class for every failure a memory update cycle can hit."""


class TransportError(MemoryManagerError):
    """Network or HTTP failure talking to the host or an external model."""


class SummarizationError(MemoryManagerError):
    """The summary could not be produced."""


class ResponseFormatError(SummarizationError):
    """The external model answered with a payload we cannot read."""


class PersistenceError(MemoryManagerError):
    """A character record could not be fetched or saved."""
