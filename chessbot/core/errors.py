"""Exceptions raised by the search core.

None of these are transient: search and evaluation are deterministic, so a
failure always means a caller or input defect and is never retried.
"""


class ChessBotError(Exception):
    """Base class for every error raised by chessbot."""


class InvalidEncodingError(ChessBotError, ValueError):
    """Board text contained a symbol or shape the feature encoder cannot read."""


class ParameterCountMismatchError(ChessBotError, ValueError):
    """A flat parameter blob does not match the network architecture."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"expected {expected} parameters, got {actual}")
        self.expected = expected
        self.actual = actual


class NetworkNotLoadedError(ChessBotError, RuntimeError):
    """Inference was requested before parameters were loaded successfully."""


class NoLegalMovesError(ChessBotError):
    """best_move was called on a position that has no legal moves."""


class ConfigurationError(ChessBotError, ValueError):
    """Search or evaluator settings are invalid or would make the search vacuous."""
