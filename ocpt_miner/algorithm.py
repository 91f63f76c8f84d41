import threading
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Union

import pandas as pd
from pm4py.objects.log.obj import EventLog
from pm4py.objects.process_tree.obj import ProcessTree
from pm4py.util import exec_utils

from ocpt_miner import cuts, dfg_discovery, fall_through, tree_utils
from ocpt_miner.fall_through import FallthroughStrategy
from ocpt_miner.graph_utils import Dfg, clean_dfg, filter_dfg, get_start_and_end_activities
from ocpt_miner.logger import logger


class Parameters(Enum):
    # first rung of the fallthrough ladder (FLOWER by default, EMPTY_TRACES runs the full ladder)
    FALLTHROUGH_STRATEGY = "fallthrough_strategy"
    # merge nested sequence/xor/parallel nodes into their parent with the same operator
    FLATTEN = "flatten"
    # mine the two branches of a cut concurrently
    FORK_JOIN = "fork_join"
    MAX_WORKERS = "max_workers"


class ForkJoin(object):
    def __init__(self, max_workers: int = 4):
        """
        Fork-join helper running branches on a thread pool.
        A branch is submitted only if a worker is free, otherwise fork declines and the caller mines
        the branch itself, so a thread waiting on its branch never waits on a queued task

        Parameters
        -----------
        max_workers
            Maximum number of worker threads
        """
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ocpt_miner")
        self.slots = threading.BoundedSemaphore(max_workers)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.executor.shutdown(wait=True)

    def _run(self, fn, *args):
        try:
            return fn(*args)
        finally:
            self.slots.release()

    def fork(self, fn: Callable, *args) -> Optional[Callable[[], Any]]:
        """
        Starts fn(*args) on a worker and returns a function joining it (returning its result),
        None if no worker is free
        """
        if not self.slots.acquire(blocking=False):
            return None
        future = self.executor.submit(self._run, fn, *args)
        return future.result


class _Subproblem(object):
    """
    Activities to mine, and the forest mined for them once known
    """

    def __init__(self, activities: Set[str], start_activities: Set[str], end_activities: Set[str]):
        self.activities = activities
        self.start_activities = start_activities
        self.end_activities = end_activities
        self.cut_type = None
        self.branches = None
        self.join = None
        self.forest = None

    def result(self) -> List[ProcessTree]:
        if self.join is not None:
            return self.join()
        return self.forest


def _mine(dfg: Dfg, activities: Set[str], start_activities: Set[str], end_activities: Set[str],
          strategy: FallthroughStrategy, flatten: bool, fork_join: Optional[ForkJoin]) -> List[ProcessTree]:
    """
    Mines the activities with an explicit stack of subproblems: a subproblem split by a cut is visited
    twice, once to find the cut and push its two branches, once (after both branches) to build the
    operator node. The depth of the Python stack does not grow with the number of cuts; only the
    strict tau loop fallthrough mines again through a plain call, at most once per removed loop point
    """
    root = _Subproblem(activities, start_activities, end_activities)
    stack = [root]
    while stack:
        problem = stack.pop()

        if problem.branches is not None:
            forest = []
            for branch in problem.branches:
                forest.extend(branch.result())
            problem.forest = [tree_utils.operator_node(problem.cut_type.value, forest, flatten=flatten)]
            continue

        if not problem.activities:
            problem.forest = []
            continue
        if len(problem.activities) == 1:
            problem.forest = [tree_utils.leaf(next(iter(problem.activities)))]
            continue

        filtered_dfg = filter_dfg(dfg, problem.activities)
        local_start, local_end = get_start_and_end_activities(dfg, problem.activities, problem.start_activities,
                                                              problem.end_activities)

        cut = cuts.detect_cut(filtered_dfg, problem.activities, local_start, local_end)
        if cut is not None:
            cut_type, set1, set2 = cut
            logger.info("%s cut found: %s | %s", cut_type, sorted(set1), sorted(set2))
            branch1 = _Subproblem(set1, local_start, local_end)
            branch2 = _Subproblem(set2, local_start, local_end)
            problem.cut_type = cut_type
            problem.branches = [branch1, branch2]
            stack.append(problem)
            if fork_join is not None:
                branch2.join = fork_join.fork(_mine, dfg, set2, local_start, local_end, strategy, flatten,
                                              fork_join)
            if branch2.join is None:
                stack.append(branch2)
            stack.append(branch1)
            continue

        logger.info("No further cuts found for the activities %s, applying fallthrough",
                    sorted(problem.activities))

        def miner(sub_dfg, sub_activities, sub_start, sub_end):
            return _mine(sub_dfg, set(sub_activities), set(sub_start), set(sub_end), strategy, flatten, fork_join)

        problem.forest = fall_through.find_fallthrough_cut(dfg, problem.activities, local_start, local_end,
                                                           strategy, miner=miner)

    return root.result()


def apply(dfg: Dfg, activities: Iterable[str], start_activities: Iterable[str], end_activities: Iterable[str],
          parameters: Optional[Dict[Any, Any]] = None) -> List[ProcessTree]:
    """
    Discovers a process forest from a directly-follows graph, recursively splitting the activities
    with the exclusive choice, sequence, parallel and redo cuts, and applying a fallthrough when no
    cut is found

    Parameters
    -----------
    dfg
        Directly-follows graph (pairs of activities -> count; non-positive counts are ignored)
    activities
        Activities to mine
    start_activities
        Start activities (the ones outside the activities are ignored)
    end_activities
        End activities (the ones outside the activities are ignored)
    parameters
        Parameters of the algorithm:
        - Parameters.FALLTHROUGH_STRATEGY => first fallthrough strategy tried (default: FLOWER)
        - Parameters.FLATTEN => merge nested associative operators (default: True)
        - Parameters.FORK_JOIN => mine the branches of a cut on a thread pool (default: False)
        - Parameters.MAX_WORKERS => size of the thread pool (default: 4)

    Returns
    -----------
    forest
        Process forest (empty if there are no activities)
    """
    strategy = fall_through.resolve_strategy(
        exec_utils.get_param_value(Parameters.FALLTHROUGH_STRATEGY, parameters, FallthroughStrategy.FLOWER))
    flatten = exec_utils.get_param_value(Parameters.FLATTEN, parameters, True)
    use_fork_join = exec_utils.get_param_value(Parameters.FORK_JOIN, parameters, False)
    max_workers = exec_utils.get_param_value(Parameters.MAX_WORKERS, parameters, 4)

    dfg = clean_dfg(dfg)
    activities = set(activities)
    start_activities = set(start_activities)
    end_activities = set(end_activities)

    if not use_fork_join:
        return _mine(dfg, activities, start_activities, end_activities, strategy, flatten, None)
    with ForkJoin(max_workers=max_workers) as fork_join:
        return _mine(dfg, activities, start_activities, end_activities, strategy, flatten, fork_join)


def apply_tree(dfg: Dfg, activities: Iterable[str], start_activities: Iterable[str],
               end_activities: Iterable[str], parameters: Optional[Dict[Any, Any]] = None) -> Optional[ProcessTree]:
    """
    Same as apply, returning a single tree (a forest with several roots is composed in sequence)
    """
    return tree_utils.merge_forest(apply(dfg, activities, start_activities, end_activities, parameters=parameters))


def apply_log(log: Union[EventLog, pd.DataFrame, List[List[str]]],
              parameters: Optional[Dict[Any, Any]] = None) -> List[ProcessTree]:
    """
    Discovers a process forest from an event log

    Parameters
    -----------
    log
        Event log, dataframe (as returned by pm4py.read_xes) or list of traces (lists of activity labels)
    parameters
        Parameters of the algorithm and of the DFG discovery (see dfg_discovery.Parameters)

    Returns
    -----------
    forest
        Process forest
    """
    if isinstance(log, list):
        log = dfg_discovery.log_from_traces(log, parameters=parameters)
    dfg, start_activities, end_activities, activities = dfg_discovery.apply(log, parameters=parameters)
    return apply(dfg, activities, start_activities, end_activities, parameters=parameters)
