"""
Tests for the seeded permutation engine and the parameter space.
"""

import math
import subprocess
import sys
from pathlib import Path

import numpy as np
import pytest

import storage
from permutations import (Permutation, PermutationEngine, draw_parameters, enumerate_parameters,
                          parameter_space_size, parameters_per_pole)
from ttp import InvalidParameter, MalformedPermutation

ROOT = Path(__file__).resolve().parents[1]


class TestGenerate:

    def test_deterministic(self):
        engine = PermutationEngine()
        first = list(engine.generate(8, 50, seed=2025))
        second = list(PermutationEngine().generate(8, 50, seed=2025))
        assert first == second

    def test_deterministic_across_interpreters(self, tmp_path):
        # A fresh interpreter must write byte-identical draws
        script = ("import sys; import storage; from permutations import PermutationEngine; "
                  "storage.save_permutations(list(PermutationEngine().generate(8, 40, 2025)), "
                  "2025, 'NL8', sys.argv[1])")
        subprocess.run([sys.executable, "-c", script, str(tmp_path / "child")],
                       cwd=ROOT, check=True)
        storage.save_permutations(list(PermutationEngine().generate(8, 40, seed=2025)),
                                  2025, "NL8", tmp_path / "parent")

        child = (tmp_path / "child" / storage.PERMUTATION_FILE).read_bytes()
        parent = (tmp_path / "parent" / storage.PERMUTATION_FILE).read_bytes()
        assert child == parent

    def test_seed_changes_sequence(self):
        engine = PermutationEngine()
        assert list(engine.generate(8, 20, seed=1)) != list(engine.generate(8, 20, seed=2))

    def test_prefix_is_stable(self):
        engine = PermutationEngine()
        short = list(engine.generate(6, 10, seed=7))
        long = list(engine.generate(6, 30, seed=7))
        assert long[:10] == short

    def test_no_duplicates(self):
        draws = list(PermutationEngine().generate(4, 150, seed=3))
        assert len(draws) == 150
        assert len(set(draws)) == 150

    def test_whole_space_can_be_drawn(self):
        draws = list(PermutationEngine().generate(4, parameter_space_size(4), seed=11))
        assert set(draws) == set(enumerate_parameters(4))

    def test_draws_are_valid(self):
        for permutation, mirror in PermutationEngine().generate(10, 25, seed=5):
            permutation.check(10)
            assert mirror in (0, 1)
            assert isinstance(permutation.order[0], int)

    def test_lazy(self):
        draws = PermutationEngine().generate(12, 1000, seed=0)
        assert next(draws) == next(PermutationEngine().generate(12, 5, seed=0))

    @pytest.mark.parametrize("n, count", [(5, 1), (3, 1), (2, 1), (4, 0), (4, 193)])
    def test_invalid_arguments_raise_immediately(self, n, count):
        with pytest.raises(InvalidParameter):
            PermutationEngine().generate(n, count, seed=1)

    def test_draw_uses_given_generator(self):
        a = draw_parameters(6, np.random.default_rng(99))
        b = draw_parameters(6, np.random.default_rng(99))
        assert a == b


class TestParameterSpace:

    @pytest.mark.parametrize("n", [4, 6, 8, 10])
    def test_sizes(self, n):
        assert parameter_space_size(n) == 2 * n * math.factorial(n)
        assert parameters_per_pole(n) == 2 * math.factorial(n)

    def test_enumeration_n4(self):
        params = list(enumerate_parameters(4))
        assert len(params) == parameter_space_size(4) == 192
        assert len(set(params)) == 192

    def test_enumeration_per_pole(self):
        params = list(enumerate_parameters(4, pole=2))
        assert len(set(params)) == parameters_per_pole(4) == 48
        assert all(p.pole == 2 for p, _ in params)


class TestPermutation:

    def test_identity(self):
        p = Permutation.identity(6)
        assert p.order == (0, 1, 2, 3, 4, 5)
        assert p.pole_team == 0
        assert p.seats() == [1, 2, 3, 4, 5]

    def test_pole_selects_team(self):
        p = Permutation((3, 1, 0, 2), pole=2)
        assert p.pole_team == 0
        assert p.seats() == [3, 1, 2]

    def test_check_rejects_repeats(self):
        with pytest.raises(MalformedPermutation):
            Permutation((0, 0, 1, 2)).check(4)

    @pytest.mark.parametrize("permutation", [
        Permutation((0, 1, 2, None)),
        Permutation((0, 1, 2, "3")),
        Permutation((0, 1, 2, [3])),
        Permutation((0, True, 2, 3)),
        Permutation((0, 1, 2, 3.0)),
        Permutation((0, 1, 2, 3), pole=1.5),
        Permutation((0, 1, 2, 3), pole=True),
        Permutation((0, 1, 2, 3), pole=None),
        Permutation((0, 1, 2, 3), pole=-1),
    ])
    def test_check_rejects_wrong_types(self, permutation):
        with pytest.raises(MalformedPermutation):
            permutation.check(4)

    def test_check_accepts_numpy_integers(self):
        Permutation(tuple(np.arange(4)), pole=np.int64(2)).check(4)

    def test_hashable(self):
        assert len({Permutation((0, 1, 2, 3), 1), Permutation((0, 1, 2, 3), 1)}) == 1
