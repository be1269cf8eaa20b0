"""Re-entrancy guard for work that must not overlap per key."""


class InFlightGuard:
    """Set of keys with work in flight on this event loop.

    acquire() never waits: a second caller for a busy key is refused, which
    is how duplicate submissions of the same turn are dropped.
    """

    def __init__(self) -> None:
        self._busy: set[str] = set()

    def acquire(self, key: str) -> bool:
        if key in self._busy:
            return False
        self._busy.add(key)
        return True

    def release(self, key: str) -> None:
        self._busy.discard(key)

    def busy(self, key: str) -> bool:
        return key in self._busy

    def clear(self) -> None:
        self._busy.clear()


turns = InFlightGuard()
creations = InFlightGuard()
