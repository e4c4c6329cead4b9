"""Monotonic allocation of coefficient keys."""


class KeyGenerator:
    """Issue unique, never reused integer keys.

    One generator is created by the application (or a test) and handed to
    every store whose keys must not collide, e.g. the base and correction
    curves of a composition curve.

    Example:
        >>> keys = KeyGenerator()
        >>> keys.get_next_key(), keys.get_next_key()
        (0, 1)
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError(f"Keys are unsigned, got start={start}")
        self._next_key = start

    def get_next_key(self) -> int:
        """Return a fresh key and advance the counter."""
        key = self._next_key
        self._next_key += 1
        return key

    @property
    def next_key(self) -> int:
        """Key that the next call to get_next_key() will return."""
        return self._next_key

    def __repr__(self) -> str:
        return f"KeyGenerator(next_key={self._next_key})"
