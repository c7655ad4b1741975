import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

R = TypeVar("R")
T = TypeVar("T")


class TwoStepSaga(Generic[R, T]):
    """
    reserve -> commit -> compensate.

    The reservation made by the first system is handed to the commit step. If the
    commit raises, the reservation is compensated on a best-effort basis and the
    original error is re-raised. A failing compensation is logged, never surfaced,
    and is not retried.
    """

    def __init__(
        self,
        name: str,
        reserve: Callable[[], R],
        commit: Callable[[R], T],
        compensate: Callable[[R], None],
    ):
        self.name = name
        self._reserve = reserve
        self._commit = commit
        self._compensate = compensate

    def run(self) -> T:
        reservation = self._reserve()
        try:
            return self._commit(reservation)
        except Exception as commit_error:
            logger.warning(f"Saga '{self.name}' commit failed, compensating: {commit_error}")
            try:
                self._compensate(reservation)
            except Exception as cleanup_error:
                logger.error(
                    f"Saga '{self.name}' compensation failed: {cleanup_error}",
                    exc_info=True,
                )
            raise
