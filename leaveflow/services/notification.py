import logging
from typing import Callable, Iterable, List

logger = logging.getLogger(__name__)

DASHBOARD = "/dashboard"
MY_REQUESTS = "/dashboard/requests"
TEAM = "/dashboard/team"
ALL_REQUESTS = "/dashboard/all-requests"

ViewListener = Callable[[List[str]], None]


class ViewRefreshNotifier:
    """
    Tells dependent views that the data behind some paths changed.
    Invalidation is by path, never by record key; subscribers decide what to refresh.
    """

    def __init__(self):
        self._listeners: List[ViewListener] = []

    def subscribe(self, listener: ViewListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: ViewListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def notify(self, paths: Iterable[str]) -> None:
        stale = list(dict.fromkeys(paths))
        logger.debug(f"Views marked stale: {stale}")
        for listener in list(self._listeners):
            try:
                listener(stale)
            except Exception as e:
                # A broken subscriber must not undo a committed mutation
                logger.warning(f"View refresh listener failed: {e}", exc_info=True)


view_notifier = ViewRefreshNotifier()
