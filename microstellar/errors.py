# microstellar/errors.py
"""Error types raised by the client and helpers to display them."""

from typing import Optional

from stellar_sdk.exceptions import BaseHorizonError


class MicroStellarError(Exception):
    """Base class for client errors."""


class InvalidInputError(MicroStellarError, ValueError):
    """Malformed address, seed, amount or asset, detected before any network call."""


class InvalidAddressError(InvalidInputError):
    """Raised when an address or seed fails structural validation."""


class InvalidAssetError(InvalidInputError):
    """Raised when an asset violates its invariants."""


class PipelineError(MicroStellarError):
    """A transaction pipeline step failed locally."""

    stage = "pipeline"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class BuildError(PipelineError):
    stage = "build"


class SignError(PipelineError):
    stage = "sign"


class InvalidStateError(PipelineError):
    """A pipeline method was called out of order."""


class RemoteError(MicroStellarError):
    """
    The ledger service rejected a request or could not be reached.

    The upstream exception is kept on `cause` (and chained as __cause__),
    so error_string() can flatten Horizon result codes for display.
    """

    stage = "submit"

    def __init__(self, message: str, cause: Optional[BaseException] = None, stage: Optional[str] = None):
        super().__init__(message)
        self.cause = cause
        self.__cause__ = cause
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        message = super().__str__()
        if self.cause is not None:
            return f"{message}: {self.cause}"
        return message


class LoadError(RemoteError):
    stage = "load"


class StreamError(RemoteError):
    stage = "stream"


def _result_codes(extras: Optional[dict]) -> list[str]:
    if not isinstance(extras, dict):
        return []
    codes = extras.get("result_codes") or {}
    result = []
    if codes.get("transaction"):
        result.append(str(codes["transaction"]))
    for op_code in codes.get("operations") or []:
        result.append(str(op_code))
    return result


def error_string(err: Optional[BaseException]) -> str:
    """
    Flatten an error into a single diagnostic line.

    Horizon rejections wrapped in RemoteError are rendered as
    "<title>: <detail> (<result codes>)". Anything else falls back to
    str(err). Never raises.
    """
    if err is None:
        return ""

    cause = err.cause if isinstance(err, RemoteError) else err
    if not isinstance(cause, BaseHorizonError):
        return str(err)

    try:
        title = getattr(cause, "title", None) or "horizon error"
        detail = getattr(cause, "detail", None)
        text = f"{title}: {detail}" if detail else str(title)
        codes = _result_codes(getattr(cause, "extras", None))
        if codes:
            text = f"{text} ({', '.join(codes)})"
        return text
    except Exception:
        return str(err)
