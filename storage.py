import json
import logging
from pathlib import Path

import numpy as np
import pandas as pd

from permutations import Permutation
from ttp import Solution

logger = logging.getLogger(__name__)

SOLUTION_PREFIX = "solution_"
PERMUTATION_FILE = "permutation.json"


def save_to_file(data, path):
    """Write `data` as indented JSON, creating parent directories as needed."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    return path


def solution_to_dict(solution):
    rounds = []
    for row in solution.schedule:
        rounds.append([{"home_game": bool(value > 0), "opponent": int(abs(value)) - 1} for value in row])
    return {
        "id": solution.id,
        "order": list(solution.permutation.order),
        "pole": solution.permutation.pole,
        "mirror": solution.mirror,
        "distance": solution.distance,
        "solution": rounds,
    }


def solution_from_dict(data):
    schedule = np.array(
        [[g["opponent"] + 1 if g["home_game"] else -(g["opponent"] + 1) for g in row]
         for row in data["solution"]],
        dtype=int,
    )
    schedule.setflags(write=False)
    return Solution(
        id=data["id"],
        permutation=Permutation(order=tuple(data["order"]), pole=data["pole"]),
        mirror=data["mirror"],
        schedule=schedule,
        distance=data["distance"],
    )


def save_solution(solution, directory):
    return save_to_file(solution_to_dict(solution), Path(directory) / f"{SOLUTION_PREFIX}{solution.id}.json")


def load_solutions(directory):
    """Read every solution_<id>.json in `directory`, sorted by id."""
    solutions = []
    for path in Path(directory).glob(f"{SOLUTION_PREFIX}*.json"):
        with open(path) as f:
            solutions.append(solution_from_dict(json.load(f)))
    solutions.sort(key=lambda s: s.id)
    return solutions


def count_duplicate_solutions(solutions):
    """Number of solutions whose schedule repeats an earlier one."""
    seen = set()
    duplicates = 0
    for solution in solutions:
        key = solution.schedule.tobytes()
        if key in seen:
            duplicates += 1
        seen.add(key)
    return duplicates


def has_duplicate_solutions(solutions):
    return count_duplicate_solutions(solutions) > 0


def save_permutations(parameters, seed, instance_name, directory):
    data = {
        "seed": seed,
        "instance_name": instance_name,
        "permutations": [
            {"order": list(permutation.order), "pole": permutation.pole, "mirror": mirror}
            for permutation, mirror in parameters
        ],
    }
    path = save_to_file(data, Path(directory) / PERMUTATION_FILE)
    logger.info(f"Saved {len(parameters)} permutations to {path}")
    return path


def load_permutations(directory):
    with open(Path(directory) / PERMUTATION_FILE) as f:
        data = json.load(f)
    parameters = [(Permutation(order=tuple(p["order"]), pole=p["pole"]), p["mirror"])
                  for p in data["permutations"]]
    return data["seed"], data["instance_name"], parameters


def save_distances(solutions, path):
    """CSV with one row per solution: id, parameters and travel distance."""
    table = pd.DataFrame(
        [{"id": s.id,
          "order": " ".join(str(t) for t in s.permutation.order),
          "pole": s.permutation.pole,
          "mirror": s.mirror,
          "distance": s.distance} for s in solutions],
        columns=["id", "order", "pole", "mirror", "distance"],
    )
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    table.to_csv(path, index=False)
    return path
