"""Tests for the time-indexed coefficient store."""

import numpy as np
import pytest

from trajectory_curves import (
    ArityMismatchError,
    Coefficient,
    CoefficientManager,
    InconsistentStoreError,
    KeyGenerator,
    OutOfRangeError,
    UnknownKeyError,
    UnknownTimeError,
)


class TestKeyGenerator:
    """Tests for key allocation."""

    def test_keys_are_sequential(self) -> None:
        """Test that keys increase by one from the start value."""
        keys = KeyGenerator(start=5)
        assert [keys.get_next_key() for _ in range(3)] == [5, 6, 7]
        assert keys.next_key == 8

    def test_negative_start_rejected(self) -> None:
        with pytest.raises(ValueError):
            KeyGenerator(start=-1)

    def test_shared_generator_never_collides(self, key_generator: KeyGenerator) -> None:
        """Test that two stores sharing a generator issue disjoint keys."""
        a = CoefficientManager(key_generator)
        b = CoefficientManager(key_generator)
        keys_a = a.insert_coefficients([0, 1, 2], [Coefficient([0.0])] * 3)
        keys_b = b.insert_coefficients([0, 1, 2], [Coefficient([0.0])] * 3)
        assert set(keys_a).isdisjoint(keys_b)

    def test_store_requires_generator(self) -> None:
        with pytest.raises(TypeError):
            CoefficientManager()


class TestInsertion:
    """Tests for inserting and overwriting coefficients."""

    def test_overwrite_keeps_key(self) -> None:
        """Test that inserting at an existing time keeps the key."""
        manager = CoefficientManager(KeyGenerator())
        key = manager.insert_coefficient(3, Coefficient([1.0]))
        assert manager.insert_coefficient(3, Coefficient([2.0])) == key
        assert manager.size() == 1
        assert manager.get_coefficient_by_key(key).equals(Coefficient([2.0]))

    def test_out_of_order_insertion_sorted(self) -> None:
        manager = CoefficientManager(KeyGenerator())
        manager.insert_coefficients([20, 0, 10], [Coefficient([2.0]), Coefficient([0.0]), Coefficient([1.0])])
        assert manager.get_times() == [0, 10, 20]
        assert [c.value[0] for c in manager.get_coefficients().values()] == [0.0, 1.0, 2.0]
        manager.check_internal_consistency()

    def test_arity_mismatch_inserts_nothing(self) -> None:
        manager = CoefficientManager(KeyGenerator())
        with pytest.raises(ArityMismatchError):
            manager.insert_coefficients([0, 1], [Coefficient([0.0])])
        assert manager.is_empty()

    def test_returned_keys_follow_input_order(self) -> None:
        manager = CoefficientManager(KeyGenerator())
        keys = manager.insert_coefficients([10, 0], [Coefficient([1.0]), Coefficient([0.0])])
        assert manager.get_time_by_key(keys[0]) == 10
        assert manager.get_time_by_key(keys[1]) == 0


class TestMutation:
    """Tests for updates and removal."""

    def test_set_coefficient_by_key(self, manager: CoefficientManager) -> None:
        key = manager.get_keys()[1]
        manager.set_coefficient_by_key(key, Coefficient([-1.0]))
        assert manager.get_coefficient_at_time(10).equals(Coefficient([-1.0]))
        assert manager.get_time_by_key(key) == 10

    def test_set_unknown_key_raises(self, manager: CoefficientManager) -> None:
        with pytest.raises(UnknownKeyError):
            manager.set_coefficient_by_key(999, Coefficient([0.0]))

    def test_set_coefficients_is_all_or_nothing(self, manager: CoefficientManager) -> None:
        """Test that one unknown key leaves every coefficient untouched."""
        key = manager.get_keys()[0]
        with pytest.raises(UnknownKeyError):
            manager.set_coefficients({key: Coefficient([5.0]), 999: Coefficient([5.0])})
        assert manager.get_coefficient_by_key(key).equals(Coefficient([0.0]))

    def test_remove_coefficient(self, manager: CoefficientManager) -> None:
        key = manager.get_keys()[2]
        manager.remove_coefficient_at_time(20)
        assert not manager.has_coefficient_at_time(20)
        assert not manager.has_coefficient_with_key(key)
        assert manager.get_times() == [0, 10, 30]
        manager.check_internal_consistency()

    def test_remove_unknown_time_raises(self, manager: CoefficientManager) -> None:
        with pytest.raises(UnknownTimeError):
            manager.remove_coefficient_at_time(5)
        assert manager.size() == 4

    def test_reinsert_after_remove_gets_new_key(self, manager: CoefficientManager) -> None:
        old_key = manager.get_keys()[2]
        manager.remove_coefficient_at_time(20)
        new_key = manager.insert_coefficient(20, Coefficient([20.0]))
        assert new_key != old_key
        manager.check_internal_consistency()

    def test_clear_does_not_reuse_keys(self, manager: CoefficientManager) -> None:
        old_keys = set(manager.get_keys())
        manager.clear()
        assert manager.is_empty()
        assert manager.get_min_time() == 0
        assert manager.get_max_time() == 0
        assert manager.insert_coefficient(0, Coefficient([0.0])) not in old_keys

    def test_consistency_after_mixed_operations(self) -> None:
        """Test the index invariants under a random insert/remove sequence."""
        np.random.seed(7)
        manager = CoefficientManager(KeyGenerator())
        for _ in range(200):
            time = int(np.random.randint(0, 50))
            if manager.has_coefficient_at_time(time) and np.random.rand() < 0.5:
                manager.remove_coefficient_at_time(time)
            else:
                manager.insert_coefficient(time, Coefficient([float(time)]))
            manager.check_internal_consistency()
        for entry in manager:
            assert manager.get_time_by_key(entry.key) == entry.time

    def test_consistency_check_detects_corruption(self, manager: CoefficientManager) -> None:
        manager._times[0] = 5
        with pytest.raises(InconsistentStoreError):
            manager.check_internal_consistency()


class TestQueries:
    """Tests for exact and bracketing lookups."""

    def test_lookup_missing_time_raises(self, manager: CoefficientManager) -> None:
        with pytest.raises(UnknownTimeError):
            manager.get_coefficient_at_time(15)

    def test_lookup_missing_key_raises(self, manager: CoefficientManager) -> None:
        with pytest.raises(UnknownKeyError):
            manager.get_coefficient_by_key(999)
        with pytest.raises(KeyError):
            manager.get_time_by_key(999)

    def test_bounds(self, manager: CoefficientManager) -> None:
        assert manager.get_min_time() == 0
        assert manager.get_max_time() == 30
        assert len(manager) == 4

    def test_bracket_interior(self, manager: CoefficientManager) -> None:
        lower, upper = manager.get_coefficients_at(15)
        assert (lower.time, upper.time) == (10, 20)

    def test_bracket_at_sample_time(self, manager: CoefficientManager) -> None:
        """Test that a sample time opens the interval to its right."""
        lower, upper = manager.get_coefficients_at(10)
        assert (lower.time, upper.time) == (10, 20)
        lower, upper = manager.get_coefficients_at(0)
        assert (lower.time, upper.time) == (0, 10)

    def test_bracket_at_max_time(self, manager: CoefficientManager) -> None:
        lower, upper = manager.get_coefficients_at(30)
        assert (lower.time, upper.time) == (20, 30)

    def test_bracket_keys_match_store(self, manager: CoefficientManager) -> None:
        lower, upper = manager.get_coefficients_at(25)
        assert manager.get_time_by_key(lower.key) == 20
        assert manager.get_time_by_key(upper.key) == 30

    @pytest.mark.parametrize("time", [-1, 31])
    def test_bracket_out_of_range(self, manager: CoefficientManager, time: int) -> None:
        with pytest.raises(OutOfRangeError):
            manager.get_coefficients_at(time)

    def test_bracket_odd_times(self) -> None:
        manager = CoefficientManager(KeyGenerator())
        for time in (1, 3, 5):
            manager.insert_coefficient(time, Coefficient([float(time)]))
        for time in (4, 5):
            lower, upper = manager.get_coefficients_at(time)
            assert (lower.time, upper.time) == (3, 5)
        for time in (0, 6):
            with pytest.raises(OutOfRangeError):
                manager.get_coefficients_at(time)

    def test_bracket_empty_raises(self) -> None:
        with pytest.raises(OutOfRangeError):
            CoefficientManager(KeyGenerator()).get_coefficients_at(0)

    def test_bracket_single_entry(self) -> None:
        """Test the degenerate bracket of a one-sample store."""
        manager = CoefficientManager(KeyGenerator())
        key = manager.insert_coefficient(7, Coefficient([1.0]))
        lower, upper = manager.get_coefficients_at(7)
        assert lower.key == upper.key == key
        with pytest.raises(OutOfRangeError):
            manager.get_coefficients_at(8)


class TestRangeQuery:
    """Tests for get_coefficients_in_range()."""

    def _times(self, manager: CoefficientManager, coefficients: dict) -> list:
        return [manager.get_time_by_key(key) for key in coefficients]

    def test_interior_range_includes_neighbours(self, manager: CoefficientManager) -> None:
        result = manager.get_coefficients_in_range(5, 25)
        assert self._times(manager, result) == [0, 10, 20, 30]

    def test_range_on_sample_times(self, manager: CoefficientManager) -> None:
        result = manager.get_coefficients_in_range(10, 20)
        assert self._times(manager, result) == [10, 20]

    def test_range_is_clamped(self, manager: CoefficientManager) -> None:
        result = manager.get_coefficients_in_range(-100, 100)
        assert self._times(manager, result) == [0, 10, 20, 30]

    def test_degenerate_ranges_are_empty(self, manager: CoefficientManager) -> None:
        assert manager.get_coefficients_in_range(20, 10) == {}
        assert manager.get_coefficients_in_range(40, 50) == {}
        assert manager.get_coefficients_in_range(-20, -10) == {}
        assert CoefficientManager(KeyGenerator()).get_coefficients_in_range(0, 10) == {}


class TestEquality:
    """Tests for store comparison."""

    def test_equal_stores(self) -> None:
        a = CoefficientManager(KeyGenerator())
        b = CoefficientManager(KeyGenerator())
        a.insert_coefficient(0, Coefficient([1.0]))
        b.insert_coefficient(0, Coefficient([1.0 + 1e-12]))
        assert a.equals(b)

    def test_different_values(self) -> None:
        a = CoefficientManager(KeyGenerator())
        b = CoefficientManager(KeyGenerator())
        a.insert_coefficient(0, Coefficient([1.0]))
        b.insert_coefficient(0, Coefficient([2.0]))
        assert not a.equals(b)
        assert not a.equals(CoefficientManager(KeyGenerator()))
