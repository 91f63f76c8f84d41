"""
Fall-throughs applied when no cut is found. The strategies are tried in this order:

1. empty traces
2. activity once per trace
3. activity concurrent
4. strict tau loop
5. tau loop
6. flower model

starting at a requested strategy; the first one producing a non-empty forest wins.
"""
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Union

from pm4py.objects.process_tree.obj import Operator, ProcessTree

from ocpt_miner import tree_utils
from ocpt_miner.graph_utils import Dfg, filter_dfg
from ocpt_miner.logger import logger

Miner = Callable[[Dfg, Set[str], Set[str], Set[str]], List[ProcessTree]]


class FallthroughStrategy(Enum):
    EMPTY_TRACES = 1
    ACTIVITY_ONCE_PER_TRACE = 2
    ACTIVITY_CONCURRENT = 3
    STRICT_TAU_LOOP = 4
    TAU_LOOP = 5
    FLOWER = 6


def resolve_strategy(strategy: Union[FallthroughStrategy, str, int, None]) -> FallthroughStrategy:
    """
    Gets the fallthrough strategy from an enum member, its name or its rung number (1 = empty traces,
    6 = flower model). Unknown values default to the flower model, which always applies
    """
    if isinstance(strategy, FallthroughStrategy):
        return strategy
    try:
        if isinstance(strategy, str):
            return FallthroughStrategy[strategy.upper()]
        if isinstance(strategy, int) and not isinstance(strategy, bool):
            return FallthroughStrategy(strategy)
    except (KeyError, ValueError):
        pass
    logger.warning("Unknown fallthrough strategy %r, using %s", strategy, FallthroughStrategy.FLOWER.name)
    return FallthroughStrategy.FLOWER


def empty_traces(activities: Set[str], start_activities: Set[str]) -> List[ProcessTree]:
    """
    No start activity means that a case may be empty: X( tau, a, b, ... )
    """
    if not activities or start_activities:
        return []
    children = [tree_utils.silent()] + [tree_utils.leaf(act) for act in sorted(activities)]
    logger.info("Applied empty_traces fallthrough with %d activities", len(activities))
    return [tree_utils.operator_node(Operator.XOR, children)]


def activity_once_per_trace(activities: Set[str], dfg: Dfg) -> List[ProcessTree]:
    """
    Activities touching exactly one edge of the DFG are assumed to occur once per trace, and are
    put in sequence. This is a heuristic on the aggregated graph, not a property of the log
    """
    if not activities:
        return []
    activity_frequency = {}
    for (a, b), v in dfg.items():
        if v <= 0:
            continue
        activity_frequency[a] = activity_frequency.get(a, 0) + 1
        activity_frequency[b] = activity_frequency.get(b, 0) + 1

    once_activities = sorted(act for act in activities if activity_frequency.get(act, 0) == 1)
    if not once_activities:
        return []
    logger.info("Applied activity_once_per_trace fallthrough with %d activities", len(once_activities))
    return [tree_utils.operator_node(Operator.SEQUENCE, [tree_utils.leaf(act) for act in once_activities])]


def activity_concurrent(activities: Set[str]) -> List[ProcessTree]:
    if not activities:
        return []
    logger.info("Applied activity_concurrent fallthrough with %d activities", len(activities))
    return [tree_utils.operator_node(Operator.PARALLEL, [tree_utils.leaf(act) for act in sorted(activities)])]


def strict_tau_loop(dfg: Dfg, activities: Set[str], start_activities: Set[str], end_activities: Set[str],
                    miner: Miner) -> List[ProcessTree]:
    """
    Activities that are both start and end activities are loop points. For each loop point, the
    remaining activities are mined again and the loop point becomes the redo part:
    *( IM(rest), loop_point )

    Parameters
    -------------
    dfg
        Directly-follows graph
    activities
        Activities
    start_activities
        Local start activities
    end_activities
        Local end activities
    miner
        Tree builder called on the remaining activities

    Returns
    -------------
    forest
        Loop forest, empty if no loop point yields a sub-forest
    """
    if not activities or not start_activities or not end_activities:
        return []
    loop_points = sorted(set(start_activities).intersection(end_activities))
    if not loop_points:
        return []
    logger.debug("Found potential loop points: %s", loop_points)

    for loop_point in loop_points:
        main_activities = set(activities) - {loop_point}
        if not main_activities:
            continue
        main_forest = miner(filter_dfg(dfg, main_activities), main_activities,
                            main_activities.intersection(start_activities),
                            main_activities.intersection(end_activities))
        if not main_forest:
            continue
        logger.info("Applied strict_tau_loop fallthrough with loop point %s", loop_point)
        return [tree_utils.operator_node(Operator.LOOP, main_forest + [tree_utils.leaf(loop_point)])]

    logger.debug("No valid strict tau loop found")
    return []


def tau_loop(activities: Set[str], start_activities: Set[str]) -> List[ProcessTree]:
    """
    More than one start activity is taken as a hint that the process may restart:
    *( ->( a, b, ... ), tau ). The loop structure is not verified
    """
    if not activities or len(start_activities) <= 1:
        return []
    body = tree_utils.operator_node(Operator.SEQUENCE, [tree_utils.leaf(act) for act in sorted(activities)])
    logger.info("Applied tau_loop fallthrough with %d activities", len(activities))
    return [tree_utils.operator_node(Operator.LOOP, [body, tree_utils.silent()])]


def flower_model(activities: Set[str]) -> List[ProcessTree]:
    """
    Any activity in any order: *( X( a, b, ... ), tau )
    """
    if not activities:
        return []
    do_node = tree_utils.operator_node(Operator.XOR, [tree_utils.leaf(act) for act in sorted(activities)])
    logger.info("Applied flower_model fallthrough with %d activities", len(activities))
    return [tree_utils.operator_node(Operator.LOOP, [do_node, tree_utils.silent()])]


def find_fallthrough_cut(dfg: Dfg, activities: Iterable[str], start_activities: Iterable[str],
                         end_activities: Iterable[str],
                         strategy: Union[FallthroughStrategy, str, int] = FallthroughStrategy.FLOWER,
                         parameters: Optional[Dict[Any, Any]] = None,
                         miner: Optional[Miner] = None) -> List[ProcessTree]:
    """
    Applies the fallthrough strategies, starting with the requested one

    Parameters
    -------------
    dfg
        Directly-follows graph
    activities
        Activities
    start_activities
        Local start activities
    end_activities
        Local end activities
    strategy
        First strategy to try (unknown values default to the flower model)
    parameters
        Parameters of the tree builder, used by the strict tau loop when no miner is given
    miner
        Tree builder used by the strict tau loop

    Returns
    -------------
    forest
        Forest of the first strategy that applies, empty if none applies
    """
    activities = set(activities)
    start_activities = set(start_activities)
    end_activities = set(end_activities)
    strategy = resolve_strategy(strategy)

    if miner is None:
        from ocpt_miner import algorithm

        def miner(sub_dfg, sub_activities, sub_start, sub_end):
            return algorithm.apply(sub_dfg, sub_activities, sub_start, sub_end, parameters=parameters)

    strategies = {
        FallthroughStrategy.EMPTY_TRACES: lambda: empty_traces(activities, start_activities),
        FallthroughStrategy.ACTIVITY_ONCE_PER_TRACE: lambda: activity_once_per_trace(activities, dfg),
        FallthroughStrategy.ACTIVITY_CONCURRENT: lambda: activity_concurrent(activities),
        FallthroughStrategy.STRICT_TAU_LOOP: lambda: strict_tau_loop(dfg, activities, start_activities,
                                                                     end_activities, miner),
        FallthroughStrategy.TAU_LOOP: lambda: tau_loop(activities, start_activities),
        FallthroughStrategy.FLOWER: lambda: flower_model(activities),
    }

    for current_strategy in FallthroughStrategy:
        if current_strategy.value < strategy.value:
            continue
        logger.debug("Trying %s fallthrough", current_strategy.name)
        result = strategies[current_strategy]()
        if result:
            return result

    logger.info("No fallthrough strategy produced a valid result")
    return []
