"""Time-indexed coefficient store for curves with local support.

Coefficients live in an arena of slots. Two indices address the same slots:

- a time index: sorted parallel lists of times and slot ids, searched with
  bisect, giving predecessor/successor/bracket queries in O(log n);
- a key index: a dict from key to slot id.

Both indices store plain slot ids, so neither holds references into the
other. check_internal_consistency() verifies that they agree.
"""

import logging
from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .coefficient import KeyCoefficientTime
from .errors import (
    ArityMismatchError,
    InconsistentStoreError,
    OutOfRangeError,
    UnknownKeyError,
    UnknownTimeError,
)
from .keys import KeyGenerator

logger = logging.getLogger(__name__)


@dataclass
class _Slot:
    key: int
    time: int
    coefficient: Any


class CoefficientManager:
    """Sparse, time-ordered container of keyed coefficients.

    At most one coefficient is stored per time. Every coefficient receives a
    key from the key generator when it is first inserted; the key stays
    bound to that coefficient until it is removed.

    Inserting or removing a time shifts the sorted time lists, so those
    operations cost O(n) list moves on top of the O(log n) search. Lookups
    by time or by key stay O(log n) and O(1).

    Example:
        >>> manager = CoefficientManager(KeyGenerator())
        >>> key = manager.insert_coefficient(3, Coefficient([1.0]))
        >>> manager.insert_coefficient(3, Coefficient([2.0])) == key
        True
        >>> manager.size()
        1
    """

    def __init__(self, key_generator: KeyGenerator):
        """Initialize an empty store.

        Args:
            key_generator: Allocator for new keys. Stores whose keys end up
                in one set of optimizer values must share one generator.
        """
        self.key_generator = key_generator
        self._slots: List[Optional[_Slot]] = []
        self._free_slots: List[int] = []
        self._times: List[int] = []
        self._time_slots: List[int] = []
        self._key_to_slot: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._times)

    def __iter__(self) -> Iterator[KeyCoefficientTime]:
        """Iterate over the stored entries in time order."""
        for index in range(len(self._times)):
            yield self._entry(index)

    def __repr__(self) -> str:
        if not self._times:
            return "CoefficientManager(size=0)"
        return (
            f"CoefficientManager(size={self.size()}, "
            f"range=[{self.get_min_time()}, {self.get_max_time()}])"
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _entry(self, index: int) -> KeyCoefficientTime:
        slot = self._slots[self._time_slots[index]]
        return KeyCoefficientTime(time=slot.time, key=slot.key, coefficient=slot.coefficient)

    def _find_time(self, time: int) -> Optional[int]:
        """Return the time-index position of time, or None."""
        index = bisect_left(self._times, time)
        if index < len(self._times) and self._times[index] == time:
            return index
        return None

    def _allocate_slot(self, slot: _Slot) -> int:
        if self._free_slots:
            slot_id = self._free_slots.pop()
            self._slots[slot_id] = slot
        else:
            slot_id = len(self._slots)
            self._slots.append(slot)
        return slot_id

    def _slot_for_key(self, key: int) -> _Slot:
        slot_id = self._key_to_slot.get(key)
        if slot_id is None:
            raise UnknownKeyError(f"Key {key} is not in the container.")
        return self._slots[slot_id]

    # ------------------------------------------------------------------
    # Insertion and mutation
    # ------------------------------------------------------------------

    def insert_coefficient(self, time: int, coefficient: Any) -> int:
        """Insert a coefficient at a time.

        If a coefficient already exists at this time its value is
        overwritten and its key is kept.

        Args:
            time: Sample time.
            coefficient: Coefficient value.

        Returns:
            Key of the coefficient at this time.
        """
        index = bisect_left(self._times, time)
        if index < len(self._times) and self._times[index] == time:
            slot = self._slots[self._time_slots[index]]
            slot.coefficient = coefficient
            return slot.key

        key = self.key_generator.get_next_key()
        slot_id = self._allocate_slot(_Slot(key=key, time=time, coefficient=coefficient))
        self._times.insert(index, time)
        self._time_slots.insert(index, slot_id)
        self._key_to_slot[key] = slot_id
        return key

    def insert_coefficients(self, times: Sequence[int], coefficients: Sequence[Any]) -> List[int]:
        """Insert coefficients pairwise, in input order.

        Args:
            times: Sample times.
            coefficients: Coefficient values, one per time.

        Returns:
            Keys of the inserted (or overwritten) coefficients.

        Raises:
            ArityMismatchError: If the sequences differ in length.
        """
        if len(times) != len(coefficients):
            raise ArityMismatchError(
                f"Got {len(times)} times but {len(coefficients)} coefficients"
            )
        return [self.insert_coefficient(t, c) for t, c in zip(times, coefficients)]

    def set_coefficient_by_key(self, key: int, coefficient: Any) -> None:
        """Replace the value of an existing coefficient.

        The coefficient keeps its time and key.

        Raises:
            UnknownKeyError: If the key is not in the store.
        """
        self._slot_for_key(key).coefficient = coefficient

    def set_coefficients(self, coefficients: Mapping[int, Any]) -> None:
        """Replace the values of several existing coefficients.

        Raises:
            UnknownKeyError: If any key is not in the store. Nothing is
                modified in that case.
        """
        for key in coefficients:
            self._slot_for_key(key)
        for key, coefficient in coefficients.items():
            self.set_coefficient_by_key(key, coefficient)

    def remove_coefficient_at_time(self, time: int) -> None:
        """Remove the coefficient stored at a time.

        Raises:
            UnknownTimeError: If there is no coefficient at this time.
        """
        index = self._find_time(time)
        if index is None:
            raise UnknownTimeError(f"No coefficient at time {time}")
        slot_id = self._time_slots.pop(index)
        del self._times[index]
        slot = self._slots[slot_id]
        del self._key_to_slot[slot.key]
        self._slots[slot_id] = None
        self._free_slots.append(slot_id)

    def clear(self) -> None:
        """Remove all coefficients. Issued keys are not reused."""
        self._slots.clear()
        self._free_slots.clear()
        self._times.clear()
        self._time_slots.clear()
        self._key_to_slot.clear()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_coefficient_at_time(self, time: int) -> bool:
        return self._find_time(time) is not None

    def has_coefficient_with_key(self, key: int) -> bool:
        return key in self._key_to_slot

    def get_coefficient_by_key(self, key: int) -> Any:
        """Return the coefficient associated with a key.

        Raises:
            UnknownKeyError: If the key is not in the store.
        """
        return self._slot_for_key(key).coefficient

    def get_coefficient_at_time(self, time: int) -> Any:
        """Return the coefficient stored at exactly this time.

        Raises:
            UnknownTimeError: If there is no coefficient at this time.
        """
        index = self._find_time(time)
        if index is None:
            raise UnknownTimeError(f"No coefficient at time {time}")
        return self._entry(index).coefficient

    def get_time_by_key(self, key: int) -> int:
        """Return the time of the coefficient with this key."""
        return self._slot_for_key(key).time

    def get_coefficients_at(self, time: int) -> Tuple[KeyCoefficientTime, KeyCoefficientTime]:
        """Get the pair of coefficients whose interval contains a time.

        Returns entries (lower, upper) with lower.time <= time < upper.time.
        At the maximum time the last two entries are returned, so that the
        final sample is itself evaluable.

        Beyond the usual two-entry requirement, a store holding a single
        entry also brackets exactly that entry's time and returns
        (entry, entry), which lets one-sample curves be evaluated there.

        Args:
            time: Query time.

        Returns:
            Tuple of the lower and upper bracketing entries.

        Raises:
            OutOfRangeError: If the store is empty or the time is outside
                [min_time, max_time].
        """
        if not self._times:
            logger.info("No coefficients")
            raise OutOfRangeError(f"Cannot bracket time {time}: no coefficients")

        if len(self._times) == 1:
            if time == self._times[0]:
                entry = self._entry(0)
                return entry, entry
            index = 0
        elif time == self._times[-1]:
            index = len(self._times) - 1
        else:
            index = bisect_right(self._times, time)

        if index == 0 or index == len(self._times):
            logger.info(
                "time, %d, is out of bounds: [%d, %d]",
                time, self.get_min_time(), self.get_max_time(),
            )
            raise OutOfRangeError(
                f"Time {time} is out of bounds: [{self.get_min_time()}, {self.get_max_time()}]"
            )
        return self._entry(index - 1), self._entry(index)

    def get_coefficients_in_range(self, start_time: int, end_time: int) -> Dict[int, Any]:
        """Get the coefficients that are active within [start_time, end_time].

        The range is clamped to the curve definition. The coefficient at or
        immediately before start_time is always included, as is the first
        coefficient reached at or after end_time.

        Args:
            start_time: Start of the range.
            end_time: End of the range.

        Returns:
            Mapping from key to coefficient, ordered by time. Empty when
            start_time > end_time or the range does not overlap the curve.
        """
        coefficients: Dict[int, Any] = {}
        if not self._times:
            return coefficients
        if start_time > end_time or start_time > self.get_max_time() or end_time < self.get_min_time():
            return coefficients

        # Be forgiving if the range exceeds the definition of the curve
        start_time = max(start_time, self.get_min_time())
        end_time = min(end_time, self.get_max_time())

        index = bisect_right(self._times, start_time) - 1
        while index < len(self._times) and self._times[index] < end_time:
            entry = self._entry(index)
            coefficients[entry.key] = entry.coefficient
            index += 1
        if index < len(self._times):
            entry = self._entry(index)
            coefficients[entry.key] = entry.coefficient
        return coefficients

    def get_coefficients(self) -> Dict[int, Any]:
        """Get all coefficients as a key-to-coefficient mapping in time order."""
        return {entry.key: entry.coefficient for entry in self}

    def get_entries(self) -> List[KeyCoefficientTime]:
        """Get all entries in time order."""
        return list(self)

    def get_times(self) -> List[int]:
        """Get all sample times in increasing order."""
        return list(self._times)

    def get_keys(self) -> List[int]:
        """Get all keys, ordered by the time of their coefficient."""
        return [self._slots[slot_id].key for slot_id in self._time_slots]

    def size(self) -> int:
        return len(self._times)

    def is_empty(self) -> bool:
        return not self._times

    def get_min_time(self) -> int:
        """Earliest sample time, or 0 when empty."""
        if not self._times:
            return 0
        return self._times[0]

    def get_max_time(self) -> int:
        """Latest sample time, or 0 when empty."""
        if not self._times:
            return 0
        return self._times[-1]

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def check_internal_consistency(self) -> None:
        """Verify that the time and key indices agree.

        Intended for tests and debugging.

        Raises:
            InconsistentStoreError: On the first violated invariant.
        """
        if len(self._key_to_slot) != len(self._times) or len(self._times) != len(self._time_slots):
            raise InconsistentStoreError(
                f"Index sizes differ: keys={len(self._key_to_slot)}, "
                f"times={len(self._times)}, time slots={len(self._time_slots)}"
            )
        live_slots = sum(1 for slot in self._slots if slot is not None)
        if live_slots != len(self._times):
            raise InconsistentStoreError(
                f"{live_slots} live slots for {len(self._times)} times"
            )

        for index, (time, slot_id) in enumerate(zip(self._times, self._time_slots)):
            if index > 0 and self._times[index - 1] >= time:
                raise InconsistentStoreError(f"Times are not strictly increasing at {time}")
            slot = self._slots[slot_id]
            if slot is None:
                raise InconsistentStoreError(f"Time {time} points to a freed slot")
            if slot.time != time:
                raise InconsistentStoreError(
                    f"Slot {slot_id} stores time {slot.time}, indexed at {time}"
                )
            if self._key_to_slot.get(slot.key) != slot_id:
                raise InconsistentStoreError(f"Key {slot.key} is not in the map")

        for key, slot_id in self._key_to_slot.items():
            slot = self._slots[slot_id]
            if slot is None or slot.key != key:
                raise InconsistentStoreError(f"Key {key} resolves to the wrong slot")

    def equals(self, other: "CoefficientManager", tol: float = 1e-9) -> bool:
        """Compare two stores entry by entry in time order.

        Args:
            other: Store to compare against.
            tol: Tolerance passed to the coefficients' equals().

        Returns:
            True if both stores hold the same (time, key, coefficient)
            entries.
        """
        if self.size() != other.size():
            return False
        for mine, theirs in zip(self, other):
            if mine.time != theirs.time or mine.key != theirs.key:
                return False
            if not mine.coefficient.equals(theirs.coefficient, tol):
                return False
        return True
