"""
Observers of individual entries of the synchronization state.

Consumers subscribe to a topic and are called only when that entry
changes. Topics are tuples::

    ("call", chain_id, call_key)
    ("transaction", chain_id, hash)
    ("block", chain_id)
"""

from itertools import count
from typing import Any, Callable, Dict, Iterable, List, Tuple

Topic = Tuple[Any, ...]
Observer = Callable[[Topic], None]


def call_topic(chain_id: int, call_key: str) -> Topic:
    return ("call", chain_id, call_key)


def transaction_topic(chain_id: int, hash: str) -> Topic:
    return ("transaction", chain_id, hash)


def block_topic(chain_id: int) -> Topic:
    return ("block", chain_id)


class Observers:
    """
    Registry of observers by topic
    """

    _observers: Dict[Topic, Dict[int, Observer]]

    def __init__(self):
        self._observers = {}
        self._ids = count()

    def subscribe(self, topic: Topic, observer: Observer) -> Callable[[], None]:
        """
        Call ``observer(topic)`` every time ``topic`` changes

        Returns:
            A function removing the subscription, safe to call many times
        """
        observer_id = next(self._ids)
        self._observers.setdefault(topic, {})[observer_id] = observer

        def unsubscribe():
            observers = self._observers.get(topic)
            if observers is None:
                return
            observers.pop(observer_id, None)
            if not observers:
                del self._observers[topic]

        return unsubscribe

    def collect(self, topics: Iterable[Topic]) -> List[Tuple[Topic, Observer]]:
        """
        Snapshot of the observers of every topic in ``topics``
        """
        return [
            (topic, observer)
            for topic in dict.fromkeys(topics)
            for observer in self._observers.get(topic, {}).values()
        ]

