"""
Configuration pytest
====================
"""

import random
import sys
from pathlib import Path

import pytest

# root directory (mine_log.py) on the path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def chain_dfg():
    """A -> B -> C -> D"""
    return {("A", "B"): 4, ("B", "C"): 4, ("C", "D"): 4}


@pytest.fixture
def loop_dfg():
    """A -> B followed by the redo part C re-entering at A"""
    return {("A", "B"): 10, ("B", "C"): 3, ("C", "A"): 3}


@pytest.fixture
def complete_dfg():
    """Every pair of A..E directly follows each other in both directions"""
    activities = ["A", "B", "C", "D", "E"]
    return {(a, b): 1 for a in activities for b in activities if a != b}


def generate_random_dfg(seed, activities=("A", "B", "C", "D", "E", "F"), edge_probability=0.3):
    rnd = random.Random(seed)
    dfg = {}
    for a in activities:
        for b in activities:
            if rnd.random() < edge_probability:
                dfg[(a, b)] = rnd.randint(1, 10)
    start_activities = set(act for act in activities if rnd.random() < 0.4)
    end_activities = set(act for act in activities if rnd.random() < 0.4)
    return dfg, set(activities), start_activities, end_activities


@pytest.fixture
def random_dfgs():
    """Reproducible random graphs (dfg, activities, start activities, end activities)"""
    return [generate_random_dfg(seed) for seed in range(40)]
