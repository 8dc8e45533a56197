import logging
import xml.etree.ElementTree as ET
from collections import defaultdict
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from ttp import CONSTRUCTION_STREAK, InstanceError, InvalidParameter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Team:
    id: int
    name: str
    league: int = 0


@dataclass(frozen=True)
class CapacityConstraint:
    """RobinX CA3: per window of `intp` rounds, between min and max games of `mode`."""
    intp: int
    min: int
    max: int
    mode: str
    teams: Optional[tuple] = None
    type: str = "HARD"


@dataclass(frozen=True)
class SeparationConstraint:
    """RobinX SE1: at least `min` rounds between the two meetings of a pair."""
    min: int
    max: Optional[int] = None
    teams: Optional[tuple] = None
    type: str = "HARD"


@dataclass
class Instance:
    name: str
    teams: List[Team]
    slots: List[str]
    distance_matrix: np.ndarray
    capacity_constraints: List[CapacityConstraint] = field(default_factory=list)
    separation_constraints: List[SeparationConstraint] = field(default_factory=list)

    @property
    def n(self):
        return len(self.teams)

    @property
    def team_names(self):
        return [team.name for team in self.teams]

    @property
    def max_streak(self):
        # CA3 with max < intp caps the home/away run length at max
        bounds = [c.max for c in self.capacity_constraints if c.mode in ("H", "A") and c.max < c.intp]
        return min(bounds) if bounds else CONSTRUCTION_STREAK


def make_distance_matrix(values):
    """Validate travel distances and return them as a read-only square array."""
    matrix = np.array(values)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise InvalidParameter(f"Distance matrix must be square, got shape {matrix.shape}")
    if not np.issubdtype(matrix.dtype, np.number):
        raise InvalidParameter("Distance matrix must be numeric")
    if (matrix < 0).any():
        raise InvalidParameter("Distances must be non-negative")
    if (np.diag(matrix) != 0).any():
        raise InvalidParameter("Distance from a venue to itself must be zero")
    matrix.setflags(write=False)
    return matrix


def parse_team_list(text):
    """RobinX lists team ids as `0;1;2`."""
    if not text:
        return None
    return tuple(int(t) for t in text.split(";") if t.strip() != "")


def parse_robinx_xml(xml_path):
    """Parse a RobinX-format TTP instance (like NL4.xml)."""
    try:
        tree = ET.parse(xml_path)
    except ET.ParseError as e:
        raise InstanceError(f"Could not parse instance file '{xml_path}': {e}") from e
    root = tree.getroot()

    name_node = root.find(".//MetaData/InstanceName")
    instance_name = name_node.text.strip() if name_node is not None and name_node.text else ""

    teams = []
    for t in root.findall(".//Teams/team"):
        tid = int(t.attrib["id"])
        teams.append(Team(id=tid,
                          name=t.attrib.get("name", str(tid)),
                          league=int(t.attrib.get("league", 0))))
    teams.sort(key=lambda team: team.id)

    slots = [s.attrib.get("name", s.attrib.get("id", "")) for s in root.findall(".//Slots/slot")]

    dist_map = defaultdict(dict)
    for d in root.findall(".//Distances/distance"):
        i = int(d.attrib["team1"])
        j = int(d.attrib["team2"])
        dist_map[i][j] = int(d.attrib["dist"])

    # Some files only list distances; infer the team ids from them
    if not teams:
        ids = sorted(set(dist_map.keys()) | set(k for m in dist_map.values() for k in m.keys()))
        teams = [Team(id=i, name=str(i)) for i in ids]

    n = len(teams)
    if [team.id for team in teams] != list(range(n)):
        raise InstanceError(f"Team ids must be 0..{n - 1}")

    dist = [[0] * n for _ in range(n)]
    for i in range(n):
        for j in range(n):
            if i == j:
                continue
            # Fall back to the opposite direction; most instances are symmetric
            if j in dist_map.get(i, {}):
                dist[i][j] = dist_map[i][j]
            elif i in dist_map.get(j, {}):
                dist[i][j] = dist_map[j][i]
            else:
                raise InstanceError(f"Missing distance between {i} and {j} in '{xml_path}'")

    capacity_constraints = []
    for c in root.findall(".//CapacityConstraints/*"):
        if not c.tag.startswith("CA"):
            continue
        intp = int(c.attrib.get("intp", 0))
        capacity_constraints.append(CapacityConstraint(
            intp=intp,
            min=int(c.attrib.get("min") or 0),
            max=int(c.attrib.get("max") or intp),
            mode=c.attrib.get("mode1", "HA"),
            teams=parse_team_list(c.attrib.get("teams1")),
            type=c.attrib.get("type", "HARD"),
        ))

    separation_constraints = []
    for c in root.findall(".//SeparationConstraints/*"):
        if not c.tag.startswith("SE"):
            continue
        se_max = c.attrib.get("max")
        separation_constraints.append(SeparationConstraint(
            min=int(c.attrib.get("min") or 0),
            max=int(se_max) if se_max else None,
            teams=parse_team_list(c.attrib.get("teams")),
            type=c.attrib.get("type", "HARD"),
        ))

    instance = Instance(
        name=instance_name,
        teams=teams,
        slots=slots,
        distance_matrix=make_distance_matrix(dist),
        capacity_constraints=capacity_constraints,
        separation_constraints=separation_constraints,
    )
    logger.info(f"Parsed instance {instance.name or xml_path}: n={n}, slots={len(slots)}, "
                f"max streak={instance.max_streak}")
    return instance
