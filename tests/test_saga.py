import pytest

from leaveflow.core.exceptions import ConflictError
from leaveflow.services.saga import TwoStepSaga


def test_successful_saga_returns_commit_result():
    calls = []
    saga = TwoStepSaga(
        name="ok",
        reserve=lambda: "ext-1",
        commit=lambda reservation: calls.append(("commit", reservation)) or "row",
        compensate=lambda reservation: calls.append(("compensate", reservation)),
    )
    assert saga.run() == "row"
    assert calls == [("commit", "ext-1")]


def test_failed_commit_is_compensated_and_reraised():
    compensated = []

    def commit(reservation):
        raise ConflictError("duplicate", field="email")

    saga = TwoStepSaga("fail", lambda: "ext-2", commit, compensated.append)
    with pytest.raises(ConflictError) as exc:
        saga.run()
    assert exc.value.field == "email"
    assert compensated == ["ext-2"]


def test_compensation_failure_is_not_surfaced():
    def commit(reservation):
        raise ValueError("local insert failed")

    def compensate(reservation):
        raise RuntimeError("remote delete failed")

    with pytest.raises(ValueError, match="local insert failed"):
        TwoStepSaga("cleanup", lambda: "ext-3", commit, compensate).run()


def test_failed_reservation_skips_commit():
    calls = []

    def reserve():
        raise ConflictError("taken")

    saga = TwoStepSaga("reserve", reserve, calls.append, calls.append)
    with pytest.raises(ConflictError):
        saga.run()
    assert calls == []
