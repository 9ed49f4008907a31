"""Pending autosave requests, at most one per trigger."""
from __future__ import annotations

import logging
from collections import OrderedDict
from contextlib import contextmanager
from typing import Callable, Iterator, List

logger = logging.getLogger(__name__)

AutoSaveHandler = Callable[[str], object]


class AutoSaveQueue:
    """FIFO of autosave triggers that collapses duplicates while pending.

    With ``immediate`` set, each new request is handed to the handler right
    away; otherwise requests wait for ``drain()``. Inside ``hold()`` immediate
    requests wait until the outermost hold exits.
    """

    def __init__(self, handler: AutoSaveHandler | None = None, *, immediate: bool = True) -> None:
        self._handler = handler
        self._immediate = immediate
        self._pending: "OrderedDict[str, None]" = OrderedDict()
        self._draining = False
        self._holds = 0

    def bind(self, handler: AutoSaveHandler) -> None:
        self._handler = handler

    @property
    def immediate(self) -> bool:
        return self._immediate

    @immediate.setter
    def immediate(self, value: bool) -> None:
        self._immediate = bool(value)

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Keep requests pending while a multi-step state change runs."""
        self._holds += 1
        try:
            yield
        finally:
            self._holds -= 1
        if self._immediate and not self._holds:
            self.drain()

    def request(self, trigger: str) -> bool:
        """Queue a trigger; False when an identical request is already pending."""
        if trigger in self._pending:
            logger.debug("Autosave for '%s' already pending", trigger)
            return False
        self._pending[trigger] = None
        if self._immediate and not self._holds:
            self.drain()
        return True

    def pending(self) -> List[str]:
        return list(self._pending)

    def drain(self) -> List[str]:
        """Run the handler for every pending trigger in request order."""
        if self._handler is None or self._draining:
            return []
        processed: List[str] = []
        self._draining = True
        try:
            while self._pending:
                trigger, _ = self._pending.popitem(last=False)
                self._handler(trigger)
                processed.append(trigger)
        finally:
            self._draining = False
        return processed

    def clear(self) -> None:
        self._pending.clear()
