# prime_search/channel.py
"""
Unbounded task channel: non-blocking send, blocking receive, explicit close.

Once closed, every receiver wakes and gets None; tasks still pending are
not handed out.
"""
from __future__ import annotations
import threading
from collections import deque
from typing import Deque, Optional

from .contracts import Task


class ChannelClosed(RuntimeError):
    """send() on a closed channel."""


class TaskChannel:
    def __init__(self):
        self._cond = threading.Condition()
        self._items: Deque[Task] = deque()
        self._closed = False

    def send(self, task: Task) -> None:
        with self._cond:
            if self._closed:
                raise ChannelClosed("channel is closed")
            self._items.append(task)
            self._cond.notify()

    def recv(self, timeout: Optional[float] = None) -> Optional[Task]:
        """
        Block until a task arrives or the channel closes.
        Returns None when closed, or when ``timeout`` elapses first.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._items or self._closed, timeout)
            if self._closed or not self._items:
                return None
            return self._items.popleft()

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)
