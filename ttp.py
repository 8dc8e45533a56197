import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

DOUBLE_ROUND_ROBIN = "doubleRoundRobin"
NO_REPEAT = "noRepeat"
MAX_STREAK = "maxStreak"

# Longest home/away run the circle construction can produce
CONSTRUCTION_STREAK = 3


class TTPError(Exception):
    """Base class for every error raised by ttpgen."""


class InvalidParameter(TTPError, ValueError):
    pass


class MalformedPermutation(TTPError, ValueError):
    pass


class EmptyInput(TTPError, ValueError):
    pass


class InstanceError(TTPError):
    pass


class ConstraintViolation(TTPError, AssertionError):
    """A built schedule breaks one of the hard constraints.

    Always a construction bug, never something to recover from.
    """

    def __init__(self, kind, round, team):
        self.kind = kind
        self.round = round
        self.team = team
        super().__init__(f"{kind} violated in round {round} by team {team}")


def check_team_count(n):
    if not isinstance(n, (int, np.integer)) or isinstance(n, bool):
        raise InvalidParameter(f"Team count must be an integer, got {n!r}")
    if n < 4 or n % 2 != 0:
        raise InvalidParameter(f"Team count must be even and at least 4, got {n}")


def check_streak_bound(max_streak):
    if max_streak < CONSTRUCTION_STREAK:
        raise InvalidParameter(
            f"Streak bound {max_streak} is below {CONSTRUCTION_STREAK}, "
            "which circle schedules cannot guarantee")


def opponent_of(value):
    """Decode a schedule cell into the 0-based opponent index."""
    return abs(int(value)) - 1


def venue_of(team, value):
    """Index of the venue where `team` plays a game encoded as `value`."""
    if value > 0:
        return team
    return abs(int(value)) - 1


@dataclass(frozen=True, eq=False)
class Solution:
    """One generated schedule together with the parameters that produced it."""
    id: int
    permutation: object
    mirror: int
    schedule: np.ndarray
    distance: float

    @property
    def n(self):
        return self.schedule.shape[1]

    @property
    def rounds(self):
        return self.schedule.shape[0]


@dataclass(frozen=True)
class Evaluation:
    distance: float
    capacity_violations: int
    separation_violations: int
    round_robin_respected: bool


def calculate_cost(schedule, distance_matrix):
    """Total travel distance of a schedule.

    Every team starts at home, travels to the venue of each round in turn
    and returns home after the last round.
    """
    rounds, n = schedule.shape
    cost = 0
    current_locations = np.arange(n)
    for round in range(rounds):
        for team in range(n):
            next_location = venue_of(team, schedule[round, team])
            cost += distance_matrix[current_locations[team]][next_location]
            current_locations[team] = next_location

    # Trip home after the final round
    for team in range(n):
        cost += distance_matrix[current_locations[team]][team]
    return cost.item() if isinstance(cost, np.generic) else cost


def find_double_round_robin_violation(schedule):
    """Return (round, team) of the first broken matching or pairing, else None."""
    rounds, n = schedule.shape
    if rounds != 2 * (n - 1):
        return (min(rounds, 2 * (n - 1)), 0)

    played = [set() for _ in range(n)]
    for round in range(rounds):
        for team in range(n):
            value = schedule[round, team]
            if value == 0:
                return (round, team)
            opponent = opponent_of(value)
            if opponent == team or opponent >= n:
                return (round, team)
            # The opponent must point back with the opposite venue
            if schedule[round, opponent] != -np.sign(value) * (team + 1):
                return (round, team)
            # Each (opponent, venue) combination occurs once per season
            game = (opponent, value > 0)
            if game in played[team]:
                return (round, team)
            played[team].add(game)
    return None


def find_no_repeat_violation(schedule):
    rounds, n = schedule.shape
    for round in range(1, rounds):
        for team in range(n):
            if abs(schedule[round, team]) == abs(schedule[round - 1, team]):
                return (round, team)
    return None


def find_max_streak_violation(schedule, max_streak=CONSTRUCTION_STREAK):
    rounds, n = schedule.shape
    streak = [0] * n
    for round in range(rounds):
        for team in range(n):
            same_venue = round > 0 and (schedule[round, team] > 0) == (schedule[round - 1, team] > 0)
            streak[team] = streak[team] + 1 if same_venue else 1
            if streak[team] > max_streak:
                return (round, team)
    return None


def validate(schedule, max_streak=CONSTRUCTION_STREAK):
    """Raise ConstraintViolation at the first location breaking a hard constraint."""
    checks = [
        (DOUBLE_ROUND_ROBIN, lambda: find_double_round_robin_violation(schedule)),
        (NO_REPEAT, lambda: find_no_repeat_violation(schedule)),
        (MAX_STREAK, lambda: find_max_streak_violation(schedule, max_streak)),
    ]
    for kind, find in checks:
        location = find()
        if location is not None:
            round, team = location
            raise ConstraintViolation(kind, round, team)


def check_double_round_robin(schedule):
    """Every round is a perfect matching and every ordered pair meets once."""
    return find_double_round_robin_violation(schedule) is None


def check_no_repeat(schedule):
    """No team meets the same opponent in two consecutive rounds."""
    return find_no_repeat_violation(schedule) is None


def check_max_streak(schedule, max_streak=CONSTRUCTION_STREAK):
    """No team plays more than max_streak consecutive home or away games."""
    return find_max_streak_violation(schedule, max_streak) is None


def check_constraints(schedule, max_streak=CONSTRUCTION_STREAK):
    c1 = check_double_round_robin(schedule)
    c2 = check_no_repeat(schedule)
    c3 = check_max_streak(schedule, max_streak)
    logger.debug(f"Double round robin: {c1}, No repeat: {c2}, Max streak: {c3}")
    return c1 and c2 and c3


def count_capacity_violations(schedule, constraints):
    """Count windows breaking the CA3 capacity constraints of an instance."""
    rounds, n = schedule.shape
    violations = 0
    for constraint in constraints:
        window = constraint.intp
        if window <= 0 or window > rounds:
            continue
        home = schedule > 0
        if constraint.mode == "H":
            counted = home
        elif constraint.mode == "A":
            counted = ~home
        else:
            counted = np.ones_like(home)
        teams = constraint.teams if constraint.teams is not None else range(n)
        for team in teams:
            for start in range(rounds - window + 1):
                count = int(counted[start:start + window, team].sum())
                if count < constraint.min or count > constraint.max:
                    violations += 1
    return violations


def count_separation_violations(schedule, constraints):
    """Count pairs whose two meetings are closer than the SE1 minimum allows."""
    rounds, n = schedule.shape
    violations = 0
    for constraint in constraints:
        teams = constraint.teams if constraint.teams is not None else range(n)
        for team in teams:
            last_met = {}
            for round in range(rounds):
                opponent = opponent_of(schedule[round, team])
                if opponent in last_met:
                    gap = round - last_met[opponent]
                    # min counts the rounds strictly in between the two meetings
                    if gap <= constraint.min:
                        violations += 1
                    elif constraint.max is not None and gap - 1 > constraint.max:
                        violations += 1
                last_met[opponent] = round
    return violations


class ScheduleEvaluator:

    def __init__(self, distance_matrix, max_streak=CONSTRUCTION_STREAK,
                 capacity_constraints=(), separation_constraints=(), verify=False):
        self.distance_matrix = distance_matrix
        self.max_streak = max_streak
        self.capacity_constraints = list(capacity_constraints)
        self.separation_constraints = list(separation_constraints)
        self.verify = verify

    def evaluate(self, schedule):
        if self.verify:
            validate(schedule, self.max_streak)
        return calculate_cost(schedule, self.distance_matrix)

    def validate(self, schedule):
        validate(schedule, self.max_streak)

    def evaluate_full(self, schedule):
        return Evaluation(
            distance=self.evaluate(schedule),
            capacity_violations=count_capacity_violations(schedule, self.capacity_constraints),
            separation_violations=count_separation_violations(schedule, self.separation_constraints),
            round_robin_respected=check_double_round_robin(schedule),
        )


def schedule_table(schedule, team_names=None):
    """Round-indexed table of opponents, e.g. `3H` = at home against team 3."""
    rounds, n = schedule.shape
    if team_names is None:
        team_names = [str(team) for team in range(n)]
    columns = [f"{team_names[team]}:{team}" for team in range(n)]
    cells = [
        [f"{opponent_of(value)}{'H' if value > 0 else 'A'}" for value in schedule[round]]
        for round in range(rounds)
    ]
    index = [f"Slot:{round}" for round in range(rounds)]
    return pd.DataFrame(cells, index=index, columns=columns)


def schedule_to_string(solution, team_names=None):
    table = schedule_table(solution.schedule, team_names)
    return f"Id: {solution.id}\n{table.to_string()}\n"
