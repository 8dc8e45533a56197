import logging
import os
from dataclasses import dataclass
from functools import partial
from multiprocessing import Pool
from typing import Optional

from tqdm import tqdm

import storage
from circle import CircleScheduler
from instance import parse_robinx_xml
from permutations import PermutationEngine
from summary import histogram, log_summary, summarize
from ttp import (CONSTRUCTION_STREAK, InvalidParameter, ScheduleEvaluator, Solution,
                 check_streak_bound, check_team_count, schedule_to_string)

logger = logging.getLogger(__name__)


@dataclass
class RunConfig:
    """Everything one generation run needs, usually filled from the CLI."""
    instance_path: str
    solutions_dir: str = "solutions_output"
    permutations_dir: str = "perms_output"
    count: int = 10
    seed: int = 42
    save: bool = False
    log: bool = False
    log_file: str = "log.txt"
    workers: int = 1
    verify: bool = False
    histogram_path: Optional[str] = None
    histogram_bins: int = 20
    progress: bool = True


def build_solution(item, n, evaluator, team_names=None):
    solution_id, (permutation, mirror) = item
    schedule = CircleScheduler().build(n, permutation, mirror)
    distance = evaluator.evaluate(schedule)
    solution = Solution(id=solution_id, permutation=permutation, mirror=mirror,
                        schedule=schedule, distance=distance)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Solution:\n{schedule_to_string(solution, team_names)}Distance: {distance}")
    return solution


def generate_solutions(n, distance_matrix, count, seed, max_streak=CONSTRUCTION_STREAK,
                       verify=False, workers=1, parameters=None, team_names=None):
    """Build and evaluate one schedule per drawn (permutation, mirror) pair.

    Yields Solutions in draw order with ids starting at 1. Pass `parameters`
    to reuse an already drawn sequence instead of drawing from `seed`.
    """
    check_team_count(n)
    check_streak_bound(max_streak)
    if distance_matrix.shape != (n, n):
        raise InvalidParameter(f"Distance matrix shape {distance_matrix.shape} does not match {n} teams")
    if workers < 1:
        raise InvalidParameter(f"Need at least one worker, got {workers}")
    if parameters is None:
        parameters = PermutationEngine().generate(n, count, seed)
    return _solve_all(n, distance_matrix, count, max_streak, verify, workers, parameters, team_names)


def _solve_all(n, distance_matrix, count, max_streak, verify, workers, parameters, team_names):
    evaluator = ScheduleEvaluator(distance_matrix, max_streak=max_streak, verify=verify)
    task = partial(build_solution, n=n, evaluator=evaluator, team_names=team_names)
    items = enumerate(parameters, start=1)

    if workers == 1:
        for item in items:
            yield task(item)
        return

    # Each task only reads the shared distance matrix, so order is the only coordination
    with Pool(processes=workers) as pool:
        for solution in pool.imap(task, items, chunksize=max(1, count // (workers * 4))):
            yield solution


def run(config):
    """Full pipeline: load instance, draw permutations, build, evaluate, report."""
    if not os.path.exists(config.instance_path):
        raise InvalidParameter(f"Could not find instance file at '{config.instance_path}'")

    logger.info("Loading instance file")
    instance = parse_robinx_xml(config.instance_path)
    n = instance.n
    max_streak = instance.max_streak
    check_streak_bound(max_streak)

    logger.info("Generating permutations")
    parameters = list(PermutationEngine().generate(n, config.count, config.seed))
    if config.save:
        storage.save_permutations(parameters, config.seed, instance.name, config.permutations_dir)

    logger.info("Generating solutions")
    solutions = []
    stream = generate_solutions(n, instance.distance_matrix, config.count, config.seed,
                                max_streak=max_streak, verify=config.verify,
                                workers=config.workers, parameters=parameters,
                                team_names=instance.team_names)
    for solution in tqdm(stream, total=len(parameters), disable=not config.progress):
        if config.save:
            storage.save_solution(solution, config.solutions_dir)
        solutions.append(solution)

    # Different (order, pole) pairs can seat the teams identically
    duplicates = storage.count_duplicate_solutions(solutions)
    if duplicates:
        logger.warning(f"{duplicates} of {len(solutions)} solutions repeat an earlier schedule; "
                       f"the statistics below count every repeat")

    distances = [s.distance for s in solutions]
    summary = summarize(distances)
    log_summary(summary)

    if config.save:
        storage.save_distances(solutions, os.path.join(config.solutions_dir, "distances.csv"))
    if config.histogram_path:
        table = histogram(distances, bins=config.histogram_bins)
        table.to_csv(config.histogram_path, index=False)
        logger.info(f"Histogram written to {config.histogram_path}")

    best = min(solutions, key=lambda s: s.distance)
    logger.info(f"Best distance {best.distance} from solution {best.id}")
    return solutions, summary
