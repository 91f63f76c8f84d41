"""
Cut detection on a directly-follows graph.

Every detector receives the DFG restricted to the current activities, the activities and the local
start/end activities, and returns either None (no cut) or a pair (set1, set2) of nonempty, disjoint
sets covering the activities. The search is greedy: some valid partition is returned, not
necessarily the only one.
"""
from enum import Enum
from typing import Iterable, List, Optional, Set, Tuple

import networkx as nx
from pm4py.objects.process_tree.obj import Operator

from ocpt_miner.graph_utils import Dfg, connected_components, get_successors, is_reachable_excluding, scc_dag, \
    strongly_connected_components
from ocpt_miner.logger import logger

Cut = Tuple[Set[str], Set[str]]


class CutType(Enum):
    EXCLUSIVE_CHOICE = Operator.XOR
    SEQUENCE = Operator.SEQUENCE
    PARALLEL = Operator.PARALLEL
    REDO = Operator.LOOP

    def __str__(self):
        return self.name.lower()


def has_edges_between(dfg: Dfg, set1: Iterable[str], set2: Iterable[str]) -> bool:
    """
    Checks if some edge of the DFG goes from set1 to set2 or from set2 to set1
    """
    set1 = set(set1)
    set2 = set(set2)
    for (a, b), v in dfg.items():
        if v <= 0:
            continue
        if (a in set1 and b in set2) or (a in set2 and b in set1):
            return True
    return False


def check_bi_direction_sets(dfg: Dfg, set1: Iterable[str], set2: Iterable[str]) -> bool:
    """
    Checks that every pair (m, n), m in set1 and n in set2, has edges in both directions
    """
    for m in set1:
        for n in set2:
            if dfg.get((m, n), 0) <= 0 or dfg.get((n, m), 0) <= 0:
                return False
    return True


def find_exclusive_choice_cut(dfg: Dfg, activities: Iterable[str], start_activities: Iterable[str] = None,
                              end_activities: Iterable[str] = None) -> Optional[Cut]:
    components = connected_components(dfg, activities)
    logger.debug("Found %d connected components: %s", len(components), components)
    if len(components) <= 1:
        return None

    n = len(components)
    for i in range(n):
        # first, try with just component i as set1
        set1 = set(components[i])
        set2 = set().union(*[components[j] for j in range(n) if j != i])
        if not has_edges_between(dfg, set1, set2):
            logger.debug("Exclusive cut with component %d as set1: %s | %s", i, set1, set2)
            return set1, set2
        # if that did not work, try combining with the following components
        for j in range(i + 1, n):
            combined_set = components[i] | components[j]
            other_set = set().union(*[components[k] for k in range(n) if k != i and k != j])
            if other_set and not has_edges_between(dfg, combined_set, other_set):
                logger.debug("Exclusive cut combining components %d and %d: %s | %s", i, j, combined_set,
                             other_set)
                return combined_set, other_set

    return None


def partition_scc_sets(dag: nx.DiGraph, sccs: List[List[str]]) -> Cut:
    """
    Splits the SCCs into the ones preceding (set1) and the ones following (set2) in the SCC DAG.
    An SCC both preceding and following some other SCC is put in set2 only if every SCC of set1
    reaches it and it reaches none of them back. These SCCs are resolved in reverse topological
    order (ties broken by smallest label), so an SCC is always resolved after the ones it reaches

    Parameters
    -------------
    dag
        SCC DAG (see graph_utils.scc_dag)
    sccs
        Strongly connected components

    Returns
    -------------
    act_set1
        Activities of set1
    act_set2
        Activities of set2
    """
    set1 = set(node for node in dag.nodes if dag.out_degree(node) > 0)
    set2 = set(node for node in dag.nodes if dag.in_degree(node) > 0)

    common = set1.intersection(set2)
    set1.difference_update(common)
    set2.difference_update(common)

    # acyclic: an SCC reached from t cannot reach t back
    descendants = {}

    def precedes(t, c):
        if t not in descendants:
            descendants[t] = nx.descendants(dag, t)
        return c in descendants[t]

    order = list(nx.lexicographical_topological_sort(dag, key=lambda node: min(sccs[node])))
    for c in reversed(order):
        if c not in common:
            continue
        if all(precedes(t, c) for t in set1):
            set2.add(c)
        else:
            set1.add(c)

    act_set1 = set(act for i in set1 for act in sccs[i])
    act_set2 = set(act for i in set2 for act in sccs[i])
    return act_set1, act_set2


def find_sequence_cut(dfg: Dfg, activities: Iterable[str], start_activities: Iterable[str] = None,
                      end_activities: Iterable[str] = None) -> Optional[Cut]:
    activities = set(activities)
    sccs = strongly_connected_components(dfg, activities)
    dag, _ = scc_dag(sccs, dfg)
    logger.debug("SCCs: %s, SCC DAG edges: %s", sccs, sorted(dag.edges))

    set1, set2 = partition_scc_sets(dag, sccs)
    if not set1 or not set2 or set1 | set2 != activities:
        return None
    return set1, set2


def parallel_cut_condition_check(set1: Set[str], set2: Set[str], start_activities: Iterable[str],
                                 end_activities: Iterable[str]) -> bool:
    """
    A parallel split is valid only if both branches can begin and end a case
    """
    start_activities = set(start_activities)
    end_activities = set(end_activities)
    return not set1.isdisjoint(start_activities) and not set1.isdisjoint(end_activities) \
        and not set2.isdisjoint(start_activities) and not set2.isdisjoint(end_activities)


def find_parallel_cut(dfg: Dfg, activities: Iterable[str], start_activities: Iterable[str],
                      end_activities: Iterable[str]) -> Optional[Cut]:
    set1 = set()
    set2 = set()

    for act in sorted(activities):
        if not set1:
            set1.add(act)
            continue
        if check_bi_direction_sets(dfg, [act], set1):
            set2.add(act)
        elif not set2 or check_bi_direction_sets(dfg, [act], set2):
            set1.add(act)
        else:
            logger.debug("Activity %s is not concurrent with either group", act)
            return None

    if not set1 or not set2:
        return None
    if not parallel_cut_condition_check(set1, set2, start_activities, end_activities):
        logger.debug("Parallel split %s | %s does not start and end in both branches", set1, set2)
        return None
    return set1, set2


def redo_cut_condition_check(dfg: Dfg, set1: Set[str], set2: Set[str], start_activities: Iterable[str],
                             end_activities: Iterable[str]) -> bool:
    """
    Certifies that set2 is a redo part re-entering the loop:
    start/end activities in set1, some edge end -> set2 and set2 -> start, every end activity has an
    edge into set2 and every start activity an edge from set2

    Parameters
    -------------
    dfg
        Restricted DFG
    set1
        Do part
    set2
        Redo part
    start_activities
        Local start activities
    end_activities
        Local end activities

    Returns
    -------------
    boolean
        True if the redo cut is valid
    """
    start_activities = set(start_activities)
    end_activities = set(end_activities)

    def has_edge(a, b):
        return dfg.get((a, b), 0) > 0

    if not start_activities.issubset(set1) or not end_activities.issubset(set1):
        return False
    if not any(has_edge(e, x) for e in end_activities for x in set2):
        return False
    if not any(has_edge(x, s) for x in set2 for s in start_activities):
        return False
    for e in end_activities:
        if not any(has_edge(e, b) for b in set2):
            return False
    for s in start_activities:
        if not any(has_edge(b, s) for b in set2):
            return False
    return True


def find_redo_cut(dfg: Dfg, activities: Iterable[str], start_activities: Iterable[str],
                  end_activities: Iterable[str]) -> Optional[Cut]:
    start_activities = set(start_activities)
    end_activities = set(end_activities)
    set1 = start_activities | end_activities
    set2 = set()
    successors = get_successors(dfg)

    for x in sorted(activities):
        if x in set1:
            continue
        is_s1_redo = is_reachable_excluding(start_activities, x, end_activities, dfg, successors=successors)
        is_s2_redo = is_reachable_excluding(end_activities, x, start_activities, dfg, successors=successors)
        if is_s1_redo and not is_s2_redo:
            set1.add(x)
        elif not is_s1_redo and is_s2_redo:
            set2.add(x)
        else:
            logger.debug("Activity %s cannot be assigned to the do or the redo part", x)
            return None

    if not set1 or not set2:
        return None
    if not redo_cut_condition_check(dfg, set1, set2, start_activities, end_activities):
        logger.debug("Redo split %s | %s does not re-enter the loop", set1, set2)
        return None
    return set1, set2


CUT_DETECTORS = (
    (CutType.EXCLUSIVE_CHOICE, find_exclusive_choice_cut),
    (CutType.SEQUENCE, find_sequence_cut),
    (CutType.PARALLEL, find_parallel_cut),
    (CutType.REDO, find_redo_cut),
)


def detect_cut(dfg: Dfg, activities: Iterable[str], start_activities: Iterable[str],
               end_activities: Iterable[str]) -> Optional[Tuple[CutType, Set[str], Set[str]]]:
    """
    Tries the cuts in priority order (exclusive choice, sequence, parallel, redo)

    Returns
    -------------
    cut
        (type of cut, set1, set2) of the first cut found, None if no cut applies
    """
    activities = set(activities)
    for cut_type, detector in CUT_DETECTORS:
        logger.debug("Attempting to find %s cut on %s", cut_type, sorted(activities))
        cut = detector(dfg, activities, start_activities, end_activities)
        if cut is not None:
            return cut_type, cut[0], cut[1]
    return None
