import itertools
import logging
import math
import numbers
from dataclasses import dataclass

import numpy as np

from ttp import InvalidParameter, MalformedPermutation, check_team_count

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Permutation:
    """Team order around the circle; order[pole] is the team fixed at the pole."""
    order: tuple
    pole: int = 0

    @classmethod
    def identity(cls, n):
        return cls(order=tuple(range(n)), pole=0)

    @property
    def n(self):
        return len(self.order)

    @property
    def pole_team(self):
        return self.order[self.pole]

    def seats(self):
        """Teams in the rotating seats, in order, with the pole team removed."""
        return [team for i, team in enumerate(self.order) if i != self.pole]

    def check(self, n):
        if (len(self.order) != n or not all(_is_index(team) for team in self.order)
                or set(self.order) != set(range(n))):
            raise MalformedPermutation(f"{list(self.order)} is not a permutation of 0..{n - 1}")
        if not _is_index(self.pole) or not 0 <= self.pole < n:
            raise MalformedPermutation(f"Pole index {self.pole!r} out of range for {n} teams")


def _is_index(value):
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def parameter_space_size(n):
    """Number of distinct (permutation, mirror) pairs: n! orders x n poles x 2 mirrors."""
    return 2 * n * math.factorial(n)


def parameters_per_pole(n):
    return 2 * math.factorial(n)


def enumerate_parameters(n, pole=None):
    """Every (permutation, mirror) pair in a fixed order, optionally for one pole index."""
    check_team_count(n)
    poles = range(n) if pole is None else [pole]
    for order in itertools.permutations(range(n)):
        for p in poles:
            for mirror in (0, 1):
                yield Permutation(order=order, pole=p), mirror


def draw_parameters(n, rng):
    order = tuple(int(team) for team in rng.permutation(n))
    pole = int(rng.integers(n))
    mirror = int(rng.integers(2))
    return Permutation(order=order, pole=pole), mirror


class PermutationEngine:

    def generate(self, n, count, seed):
        """Lazily draw `count` distinct (permutation, mirror) pairs from `seed`.

        Arguments are checked immediately; drawing only starts on iteration.
        """
        check_team_count(n)
        maximum = parameter_space_size(n)
        if count < 1 or count > maximum:
            raise InvalidParameter(f"Can draw between 1 and {maximum} parameter pairs for {n} teams, got {count}")
        rng = np.random.default_rng(seed)
        logger.info(f"Drawing {count} permutations for {n} teams with seed {seed}")
        return self._draw(n, count, rng)

    def _draw(self, n, count, rng):
        seen = set()
        while len(seen) < count:
            params = draw_parameters(n, rng)
            if params in seen:
                # Collisions get likely as count approaches the space size
                continue
            seen.add(params)
            yield params
