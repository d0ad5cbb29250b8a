from microstellar import (
    BuildError,
    InvalidAddressError,
    InvalidInputError,
    LoadError,
    MicroStellarError,
    PipelineError,
    RemoteError,
    SignError,
    StreamError,
    error_string,
)
from tests.fakes import horizon_error


def test_error_tree():
    assert issubclass(InvalidAddressError, InvalidInputError)
    assert issubclass(InvalidInputError, ValueError)
    assert issubclass(BuildError, PipelineError)
    assert issubclass(SignError, PipelineError)
    assert issubclass(LoadError, RemoteError)
    assert issubclass(StreamError, RemoteError)
    assert issubclass(RemoteError, MicroStellarError)


def test_stages():
    assert BuildError("x").stage == "build"
    assert SignError("x").stage == "sign"
    assert RemoteError("x").stage == "submit"
    assert LoadError("x").stage == "load"
    assert StreamError("x").stage == "stream"
    assert PipelineError("x", stage="submit").stage == "submit"


def test_remote_error_keeps_cause():
    cause = ConnectionError("connection refused")
    err = RemoteError("transaction submission failed", cause=cause)

    assert err.cause is cause
    assert err.__cause__ is cause
    assert str(err) == "transaction submission failed: connection refused"


def test_error_string_flattens_horizon_errors():
    err = RemoteError("transaction submission failed", cause=horizon_error())
    assert error_string(err) == "Transaction Failed: The transaction failed. (tx_failed, op_underfunded)"


def test_error_string_bare_horizon_error():
    text = error_string(horizon_error(title="Bad Request", detail="bad xdr", tx_code=None, op_codes=()))
    assert text == "Bad Request: bad xdr"


def test_error_string_other_errors():
    assert error_string(None) == ""
    assert error_string(SignError("can't sign")) == "can't sign"
    assert error_string(RemoteError("down", cause=OSError("boom"))) == "down: boom"
