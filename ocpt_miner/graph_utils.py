from typing import Dict, Iterable, List, Optional, Set, Tuple

import networkx as nx

Dfg = Dict[Tuple[str, str], int]


def clean_dfg(dfg: Dfg) -> Dfg:
    """
    Removes the entries of a DFG without a positive count (not observed)
    """
    return {k: v for k, v in dfg.items() if v > 0}


def filter_dfg(dfg: Dfg, activities: Iterable[str]) -> Dfg:
    """
    Restricts a DFG to the edges having both endpoints in the given activities

    Parameters
    -------------
    dfg
        Directly-follows graph
    activities
        Activities to keep

    Returns
    -------------
    filtered_dfg
        Restricted DFG
    """
    activities = set(activities)
    return {(a, b): v for (a, b), v in dfg.items() if v > 0 and a in activities and b in activities}


def to_nx_graph(dfg: Dfg, activities: Optional[Iterable[str]] = None) -> nx.DiGraph:
    """
    Builds a networkx directed graph from a DFG. If activities are given, the graph is
    restricted to them (isolated activities are kept as nodes)
    """
    if activities is None:
        activities = set(a for edge in dfg for a in edge)
    activities = set(activities)
    graph = nx.DiGraph()
    for act in sorted(activities):
        graph.add_node(act)
    for (a, b) in sorted(dfg):
        if dfg[(a, b)] > 0 and a in activities and b in activities:
            graph.add_edge(a, b, weight=dfg[(a, b)])
    return graph


def get_successors(dfg: Dfg) -> Dict[str, List[str]]:
    successors = {}
    for (a, b) in sorted(dfg):
        if dfg[(a, b)] > 0:
            successors.setdefault(a, []).append(b)
    return successors


def get_start_and_end_activities(dfg: Dfg, activities: Iterable[str], global_start_activities: Iterable[str],
                                 global_end_activities: Iterable[str]) -> Tuple[Set[str], Set[str]]:
    """
    Computes the start and end activities of a subset of the activities: an activity of the subset
    reached from outside is a start activity, an activity of the subset with an edge leaving the subset
    is an end activity. The given start/end activities that belong to the subset are added

    Parameters
    -------------
    dfg
        Complete (unrestricted) DFG
    activities
        Subset of activities
    global_start_activities
        Start activities of the enclosing call
    global_end_activities
        End activities of the enclosing call

    Returns
    -------------
    start_activities
        Local start activities
    end_activities
        Local end activities
    """
    activities = set(activities)
    start_activities = set()
    end_activities = set()
    for (a, b), v in dfg.items():
        if v <= 0:
            continue
        a_in = a in activities
        b_in = b in activities
        if not a_in and b_in:
            start_activities.add(b)
        if a_in and not b_in:
            end_activities.add(a)
    start_activities.update(activities.intersection(global_start_activities))
    end_activities.update(activities.intersection(global_end_activities))
    return start_activities, end_activities


def connected_components(dfg: Dfg, activities: Iterable[str]) -> List[Set[str]]:
    """
    Partitions the activities into the connected components of the undirected projection of the DFG
    (an edge in either direction links two activities)

    Parameters
    -------------
    dfg
        Directly-follows graph
    activities
        Activities to partition

    Returns
    -------------
    components
        List of components, ordered by their smallest label
    """
    graph = to_nx_graph(dfg, activities)
    return sorted((set(component) for component in nx.weakly_connected_components(graph)), key=min)


def strongly_connected_components(dfg: Dfg, activities: Iterable[str]) -> List[List[str]]:
    """
    Strongly connected components of the DFG restricted to the activities. networkx computes them
    without recursion, so the depth of the graph is not bounded by the interpreter recursion limit.
    Activities not on any cycle form SCCs of size one

    Returns
    -------------
    sccs
        List of SCCs (each one sorted), ordered by their smallest label
    """
    graph = to_nx_graph(dfg, activities)
    return sorted((sorted(scc) for scc in nx.strongly_connected_components(graph)), key=lambda scc: scc[0])


def scc_dag(sccs: List[List[str]], dfg: Dfg) -> Tuple[nx.DiGraph, Dict[str, int]]:
    """
    Contracts each SCC to a node

    Parameters
    -------------
    sccs
        Strongly connected components
    dfg
        Directly-follows graph

    Returns
    -------------
    dag
        Condensation of the DFG: node i is sccs[i], i -> j iff an edge of the DFG goes from a member
        of i to a member of j (i != j)
    activity_to_scc
        Index of the SCC of each activity
    """
    graph = to_nx_graph(dfg, set(act for scc in sccs for act in scc))
    dag = nx.condensation(graph, scc=sccs)
    return dag, dict(dag.graph["mapping"])


def is_reachable(dfg: Dfg, activity1: str, activity2: str) -> bool:
    if activity1 == activity2:
        return True
    graph = to_nx_graph(dfg)
    if activity1 not in graph or activity2 not in graph:
        return False
    return nx.has_path(graph, activity1, activity2)


def is_reachable_in_dag(dag: nx.DiGraph, scc1: int, scc2: int) -> bool:
    return nx.has_path(dag, scc1, scc2)


def is_reachable_excluding(start_activities: Iterable[str], target: str, excluded: Iterable[str],
                           dfg: Dfg, successors: Optional[Dict[str, List[str]]] = None) -> bool:
    """
    Checks whether the target can be reached from any of the start activities without passing
    through an excluded activity. Reaching the target itself always counts, even when the target is
    excluded; a start activity that is excluded (and is not the target) is not expanded

    Parameters
    -------------
    start_activities
        Activities the search starts from
    target
        Activity to reach
    excluded
        Activities the path cannot go through
    dfg
        Directly-follows graph
    successors
        Successor lists of the DFG (see get_successors), computed from the DFG if not provided

    Returns
    -------------
    boolean
        True if such a path exists
    """
    excluded = set(excluded)
    if successors is None:
        successors = get_successors(dfg)
    visited = set()
    stack = sorted(start_activities, reverse=True)
    while stack:
        current = stack.pop()
        if current == target:
            return True
        if current in visited or current in excluded:
            continue
        visited.add(current)
        stack.extend(reversed(successors.get(current, [])))
    return False
