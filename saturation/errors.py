"""
Exception types raised by the analysis engine.

Only configuration-level problems are raised. Thin data (too little
content to cluster) degrades the analysis instead of failing it.
"""


class SaturationError(Exception):
    """Base class for analyzer errors."""


class DimensionMismatchError(SaturationError, ValueError):
    """Embeddings of different lengths were compared.

    Signals an embedding provider misconfiguration upstream; never retried.
    """

    def __init__(self, expected: int, actual: int, context: str = ""):
        self.expected = expected
        self.actual = actual
        where = f" ({context})" if context else ""
        super().__init__(
            f"Embedding dimension mismatch{where}: expected {expected}, got {actual}"
        )


class AnalysisCancelledError(SaturationError):
    """The caller cancelled an in-flight analysis between pipeline stages."""

    def __init__(self, stage: str):
        self.stage = stage
        super().__init__(f"Analysis cancelled before stage '{stage}'")


class EmbeddingProviderError(SaturationError):
    """No embedding backend could produce a usable vector."""
