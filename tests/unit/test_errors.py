import pytest

from promptsmith.errors import (
    BackendTimeoutError,
    BackendUnavailableError,
    ErrorKind,
    PromptSmithError,
    RecordNotFoundError,
    classify_error,
    is_degradable,
)


@pytest.mark.parametrize(
    ("exc", "kind"),
    [
        (BackendUnavailableError("redis down"), ErrorKind.CONNECTIVITY),
        (BackendTimeoutError("slow"), ErrorKind.TIMEOUT),
        (RecordNotFoundError("missing"), ErrorKind.NOT_FOUND),
        (PromptSmithError("bad payload", kind=ErrorKind.SERIALIZATION), ErrorKind.SERIALIZATION),
        (ConnectionRefusedError("nope"), ErrorKind.CONNECTIVITY),
        (TimeoutError(), ErrorKind.TIMEOUT),
        (RuntimeError("connect ECONNREFUSED 127.0.0.1:6379"), ErrorKind.CONNECTIVITY),
        (RuntimeError("operation ETIMEDOUT"), ErrorKind.TIMEOUT),
        (ValueError("something else"), ErrorKind.UNCLASSIFIED),
    ],
)
def test_classify_error(exc: BaseException, kind: ErrorKind) -> None:
    assert classify_error(exc) is kind


def test_only_connectivity_and_timeout_are_degradable() -> None:
    assert is_degradable(BackendUnavailableError("down"))
    assert is_degradable(TimeoutError())
    assert not is_degradable(RecordNotFoundError("missing"))
    assert not is_degradable(KeyError("boom"))
