# spacewatch/pubsub.py
# ------------------------------------------------------------
# Minimal observer registry used by both engines.
#
# - subscribe() returns a disposer bound to one registration
# - disposing twice is a no-op
# - the same callable may be registered more than once; each
#   registration gets its own token
# ------------------------------------------------------------

from __future__ import annotations

import itertools
import logging
from typing import Callable, Dict, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]


class ObserverRegistry(Generic[T]):
    """
    Ordered callback registry with O(1) removal by token.
    """

    def __init__(self, name: str = "registry"):
        self.name = name
        self._tokens = itertools.count(1)
        # dicts keep insertion order, so delivery order == subscribe order
        self._callbacks: Dict[int, Callable[[T], None]] = {}

    def __len__(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        token = next(self._tokens)
        self._callbacks[token] = callback

        def unsubscribe() -> None:
            self._callbacks.pop(token, None)

        return unsubscribe

    def publish(self, make_payload: Callable[[], T]) -> int:
        """
        Deliver a fresh payload to every subscriber.

        `make_payload` is called once per subscriber so no two receivers
        share a mutable object. A failing callback is logged and skipped.
        Returns the number of callbacks invoked.
        """
        delivered = 0
        # snapshot: callbacks may unsubscribe while we iterate
        for token, callback in list(self._callbacks.items()):
            if token not in self._callbacks:
                continue
            try:
                callback(make_payload())
            except Exception:
                logger.exception("%s: subscriber %s raised", self.name, token)
            delivered += 1
        return delivered

    def clear(self) -> None:
        self._callbacks.clear()
