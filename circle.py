import logging

import numpy as np

from ttp import InvalidParameter, check_team_count

logger = logging.getLogger(__name__)


def single_round_robin(pole_team, seats):
    """First half of the season as a list of rounds of (home, away) games.

    Round k pairs the pole team with seat k and seat k+i with seat k-i.
    Seat k+i hosts when i is odd, and seat k hosts the pole game when k is
    odd. With this rule the pole team and the last seat alternate home and
    away, and every other seat has a single break around its pole game.
    """
    size = len(seats)
    rounds = []
    for k in range(size):
        if k % 2 == 1:
            matches = [(seats[k], pole_team)]
        else:
            matches = [(pole_team, seats[k])]
        for i in range(1, (size + 1) // 2):
            a = seats[(k + i) % size]
            b = seats[(k - i) % size]
            matches.append((a, b) if i % 2 == 1 else (b, a))
        rounds.append(matches)
    return rounds


def second_half_order(n, mirror):
    """Order in which the first-half rounds are replayed with venues swapped.

    mirror=0 replays them as they were. mirror=1 replays them backwards,
    except that the last first-half round is held back to close the season:
    opening the second half with it would be an immediate rematch.
    """
    half = n - 1
    if mirror == 0:
        return list(range(half))
    return list(range(half - 2, -1, -1)) + [half - 1]


class CircleScheduler:

    def build(self, n, permutation, mirror=0):
        check_team_count(n)
        if mirror not in (0, 1):
            raise InvalidParameter(f"Mirror flag must be 0 or 1, got {mirror!r}")
        permutation.check(n)

        pole_team = permutation.pole_team
        seats = permutation.seats()
        logger.debug(f"Circle construction for {n} teams | Pole team: {pole_team} | "
                     f"Seats: {seats} | Mirror: {mirror}")

        first_half = single_round_robin(pole_team, seats)
        second_half = [[(away, home) for (home, away) in first_half[k]]
                       for k in second_half_order(n, mirror)]

        schedule = np.zeros((2 * (n - 1), n), dtype=int)
        for r, matches in enumerate(first_half + second_half):
            for home, away in matches:
                schedule[r, home] = away + 1
                schedule[r, away] = -(home + 1)

        schedule.setflags(write=False)
        return schedule
