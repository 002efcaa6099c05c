"""Error taxonomy for the decomposition engine."""


class DecompositionError(Exception):
    """Base class for all engine errors."""

    pass


class EmptyInputError(DecompositionError, ValueError):
    """Raised when no page elements are supplied; nothing to decompose."""

    pass


class InvalidSourceError(DecompositionError, ValueError):
    """Raised when the source bytes are not a loadable PDF."""

    pass


class OracleUnavailableError(DecompositionError):
    """Raised when the classification oracle cannot be reached or times out."""

    pass


class OracleParseError(DecompositionError):
    """Raised when the oracle response holds no valid boundary objects."""

    pass


class ArtifactSerializationError(DecompositionError):
    """Raised when one boundary's pages cannot be copied into a new PDF."""

    def __init__(self, start_page: int, end_page: int, reason: str):
        self.start_page = start_page
        self.end_page = end_page
        self.reason = reason
        super().__init__(f"failed to serialize pages {start_page}-{end_page}: {reason}")


class DecompositionCancelled(DecompositionError):
    """Raised when the caller cancels a run between stages."""

    pass
