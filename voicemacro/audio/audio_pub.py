"""Recording event publisher for status and level observers."""

import itertools
import logging
import queue
import threading
import time
from typing import Callable, List, Optional, Tuple

from pubsub import pub

logger = logging.getLogger(__name__)

_instance_ids = itertools.count(1)


def _status_listener_spec(status: str) -> None:
    """Message signature of status topics."""


def _level_listener_spec(level: int) -> None:
    """Message signature of level topics."""


class RecordingEventPublisher:
    """Publishes status and level notifications through pubsub.pub.

    Notifications are queued and sent from a single dispatcher thread, so the
    audio thread never waits on an observer and observers see them in the
    order they were produced. Each publisher uses its own pair of topics.
    """

    def __init__(self, topic: Optional[str] = None):
        """Initialize recording event publisher.

        Args:
            topic: Prefix for the pub/sub topic names. Defaults to a unique per-instance name.
        """
        self.topic = topic or f"recording_{next(_instance_ids)}"
        self.status_topic = f"{self.topic}_status"
        self.level_topic = f"{self.topic}_level"
        topic_mgr = pub.getDefaultTopicMgr()
        topic_mgr.getOrCreateTopic(self.status_topic, _status_listener_spec)
        topic_mgr.getOrCreateTopic(self.level_topic, _level_listener_spec)

        # pubsub only holds weak references to listeners
        self._listeners: List[Tuple[str, Callable, Callable]] = []
        self._lock = threading.Lock()

        self._queue: "queue.Queue[Optional[Tuple[str, dict]]]" = queue.Queue()
        self._dispatcher: Optional[threading.Thread] = None
        self._closed = False

        self.last_status: Optional[str] = None
        self.last_level: Optional[int] = None
        logger.info(f"RecordingEventPublisher initialized with topic: {self.topic}")

    def subscribe_status(self, callback: Callable[[str], None]) -> None:
        """Register ``callback(status)``. Any single-argument callable works."""
        def listener(status):
            callback(status)

        self._subscribe(callback, listener, self.status_topic)

    def subscribe_level(self, callback: Callable[[int], None]) -> None:
        """Register ``callback(level)`` where level is a 0-100 percentage."""
        def listener(level):
            callback(level)

        self._subscribe(callback, listener, self.level_topic)

    def unsubscribe(self, callback: Callable) -> None:
        with self._lock:
            for entry in list(self._listeners):
                topic_name, subscribed, listener = entry
                if subscribed == callback:
                    pub.unsubscribe(listener, topic_name)
                    self._listeners.remove(entry)

    def _subscribe(self, callback: Callable, listener: Callable, topic_name: str) -> None:
        # pubsub matches listener argument names against the topic, so the
        # caller's callback is wrapped in a listener with the topic's names
        with self._lock:
            pub.subscribe(listener, topic_name)
            self._listeners.append((topic_name, callback, listener))

    def publish_status(self, status: str) -> None:
        self.last_status = status
        self._enqueue(self.status_topic, {"status": status})

    def publish_level(self, level: int) -> None:
        self.last_level = level
        self._enqueue(self.level_topic, {"level": level})

    def _enqueue(self, topic_name: str, message: dict) -> None:
        if self._closed:
            logger.debug(f"Publisher closed, dropping message on {topic_name}")
            return
        self._ensure_dispatcher()
        self._queue.put((topic_name, message))

    def _ensure_dispatcher(self) -> None:
        with self._lock:
            if self._dispatcher is None or not self._dispatcher.is_alive():
                self._dispatcher = threading.Thread(target=self._dispatch_loop, daemon=True)
                self._dispatcher.name = f"{self.topic}_dispatcher"
                self._dispatcher.start()

    def _dispatch_loop(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    break
                topic_name, message = item
                try:
                    pub.sendMessage(topic_name, **message)
                except Exception as e:
                    logger.error(f"Error delivering {topic_name} notification: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    def flush(self, timeout: Optional[float] = 2.0) -> bool:
        """Wait until queued notifications have been delivered."""
        if self._dispatcher is None:
            return True
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                if deadline is None:
                    self._queue.all_tasks_done.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def close(self, timeout: float = 2.0) -> None:
        """Deliver what is queued, stop the dispatcher, drop listeners and topics."""
        if self._closed:
            return
        self._closed = True
        if self._dispatcher is not None and self._dispatcher.is_alive():
            self._queue.put(None)
            self._dispatcher.join(timeout=timeout)
            if self._dispatcher.is_alive():
                logger.warning("Event dispatcher did not stop cleanly")

        with self._lock:
            for topic_name, _, listener in self._listeners:
                try:
                    pub.unsubscribe(listener, topic_name)
                except Exception as e:
                    logger.warning(f"Error during unsubscribe: {e}")
            self._listeners.clear()

        topic_mgr = pub.getDefaultTopicMgr()
        for topic_name in (self.status_topic, self.level_topic):
            try:
                topic_mgr.delTopic(topic_name)
            except Exception as e:
                logger.warning(f"Error removing topic {topic_name}: {e}")
        logger.debug(f"RecordingEventPublisher {self.topic} closed")
