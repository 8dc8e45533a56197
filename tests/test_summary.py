"""
Tests for distance statistics.
"""

import math

import pytest

from summary import histogram, quartiles, summarize
from ttp import EmptyInput, InvalidParameter


class TestSummarize:

    def test_single_value(self):
        s = summarize([5])
        assert s.mean == s.median == s.min == s.max == 5
        assert s.variance == 0
        assert s.std_dev == 0
        assert (s.q1, s.q2, s.q3) == (5, 5, 5)

    def test_even_length(self):
        s = summarize([1, 2, 3, 4])
        assert s.mean == 2.5
        assert s.median == 2.5
        assert s.min == 1
        assert s.max == 4
        assert s.count == 4

    def test_population_variance(self):
        s = summarize([2, 4, 4, 4, 5, 5, 7, 9])
        assert s.variance == pytest.approx(4.0)
        assert s.std_dev == pytest.approx(2.0)

    def test_does_not_mutate_input(self):
        distances = [9, 1, 5, 3]
        summarize(distances)
        assert distances == [9, 1, 5, 3]

    def test_unsorted_input(self):
        s = summarize([30, 10, 20])
        assert s.median == 20
        assert s.min == 10
        assert s.max == 30

    def test_empty(self):
        with pytest.raises(EmptyInput):
            summarize([])

    def test_std_dev_is_sqrt_of_variance(self):
        s = summarize([12152, 13010, 12877, 14002, 12152])
        assert s.std_dev == pytest.approx(math.sqrt(s.variance))


class TestQuartiles:

    def test_even(self):
        assert quartiles([1, 2, 3, 4]) == (1.5, 2.5, 3.5)

    def test_odd_excludes_median(self):
        assert quartiles([1, 2, 3, 4, 5]) == (1.5, 3.0, 4.5)

    def test_two_values(self):
        assert quartiles([10, 20]) == (10.0, 15.0, 20.0)

    def test_summary_uses_same_rule(self):
        s = summarize([7, 1, 3, 5, 9, 11])
        assert (s.q1, s.q2, s.q3) == (3.0, 6.0, 9.0)


class TestHistogram:

    def test_bins(self):
        table = histogram(list(range(100)), bins=10)
        assert len(table) == 10
        assert list(table["start"])[:3] == [0, 9, 18]
        # Last bin runs from 81 up to and including 99
        assert table["end"].iloc[-1] == 99
        assert table["count"].iloc[-1] == 19
        assert table["count"].sum() == 100

    def test_largest_values_are_counted(self):
        distances = [100, 120, 139]
        table = histogram(distances, bins=20)
        assert table["count"].sum() == len(distances)
        assert table["count"].iloc[0] == 1
        assert table["count"].iloc[-1] == 2

    def test_identical_values(self):
        table = histogram([42, 42, 42], bins=4)
        assert table["count"].iloc[0] == 3
        assert table["count"].sum() == 3

    def test_invalid(self):
        with pytest.raises(EmptyInput):
            histogram([])
        with pytest.raises(InvalidParameter):
            histogram([1, 2], bins=0)
