"""Exception taxonomy for the execution pipeline.

Every error carries the pipeline stage it was raised in so an operator can
tell which step failed without reading a traceback. Expected negative results
(simulation failure, profit rejection, user decline, inclusion timeout) are
not exceptions; they are reported as outcomes.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base error; ``str()`` is prefixed with the stage label."""

    def __init__(self, message: str, *, stage: str = "pipeline") -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        return f"[{self.stage}] {self.message}"


class InputValidationError(PipelineError):
    """Bad input; raised before any side effect is performed."""

    def __init__(self, message: str, *, stage: str = "verify") -> None:
        super().__init__(message, stage=stage)


class PreflightError(PipelineError):
    """Fee-refund recipient update failed."""

    def __init__(self, message: str, *, stage: str = "preflight") -> None:
        super().__init__(message, stage=stage)


class TransportError(PipelineError):
    """Relay or chain RPC could not be reached or answered garbage."""

    def __init__(self, message: str, *, stage: str = "transport") -> None:
        super().__init__(message, stage=stage)


class JsonRpcError(TransportError):
    """The endpoint answered with a JSON-RPC error object."""

    def __init__(self, method: str, code: int | None, error_message: str, *, stage: str = "transport") -> None:
        super().__init__(f"{method} failed: code={code} msg={error_message}", stage=stage)
        self.method = method
        self.code = code
        self.error_message = error_message


class ConfirmationInputError(PipelineError):
    """The confirmation prompt could not read from its input stream."""

    def __init__(self, message: str, *, stage: str = "confirm") -> None:
        super().__init__(message, stage=stage)


__all__ = [
    "PipelineError",
    "InputValidationError",
    "PreflightError",
    "TransportError",
    "JsonRpcError",
    "ConfirmationInputError",
]
