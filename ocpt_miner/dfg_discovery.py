from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple, Union

import pandas as pd
import pm4py
from pm4py.objects.log.obj import Event, EventLog, Trace
from pm4py.util import constants, exec_utils, xes_constants

from ocpt_miner.graph_utils import Dfg


class Parameters(Enum):
    ACTIVITY_KEY = constants.PARAMETER_CONSTANT_ACTIVITY_KEY
    TIMESTAMP_KEY = constants.PARAMETER_CONSTANT_TIMESTAMP_KEY
    CASE_ID_KEY = constants.PARAMETER_CONSTANT_CASEID_KEY


def log_from_traces(traces: List[List[str]], parameters: Optional[Dict[Any, Any]] = None) -> EventLog:
    """
    Builds an event log from traces given as lists of activity labels. Each trace gets its position
    as case identifier, and its events increasing timestamps. Traces without events are skipped
    """
    activity_key = exec_utils.get_param_value(Parameters.ACTIVITY_KEY, parameters, xes_constants.DEFAULT_NAME_KEY)
    timestamp_key = exec_utils.get_param_value(Parameters.TIMESTAMP_KEY, parameters,
                                               xes_constants.DEFAULT_TIMESTAMP_KEY)

    start_time = datetime(2000, 1, 1)
    log = EventLog()
    for index, activities in enumerate(traces):
        if len(activities) == 0:
            continue
        trace = Trace(attributes={xes_constants.DEFAULT_NAME_KEY: str(index)})
        for position, activity in enumerate(activities):
            trace.append(Event({activity_key: activity, timestamp_key: start_time + timedelta(seconds=position)}))
        log.append(trace)
    return log


def apply(log: Union[EventLog, pd.DataFrame], parameters: Optional[Dict[Any, Any]] = None) -> Tuple[
        Dfg, Set[str], Set[str], Set[str]]:
    """
    Computes the directly-follows graph of a log

    Parameters
    -------------
    log
        Event log (or dataframe, as returned by pm4py.read_xes)
    parameters
        Parameters of the algorithm:
        - Parameters.ACTIVITY_KEY => attribute holding the activity (default: concept:name)
        - Parameters.TIMESTAMP_KEY => attribute holding the timestamp (default: time:timestamp)
        - Parameters.CASE_ID_KEY => case identifier column of a dataframe (default: case:concept:name)

    Returns
    -------------
    dfg
        Directly-follows graph (pair of activities -> number of occurrences)
    start_activities
        Activities starting at least one trace
    end_activities
        Activities ending at least one trace
    activities
        All the activities of the log
    """
    if len(log) == 0:
        return {}, set(), set(), set()

    activity_key = exec_utils.get_param_value(Parameters.ACTIVITY_KEY, parameters, xes_constants.DEFAULT_NAME_KEY)
    timestamp_key = exec_utils.get_param_value(Parameters.TIMESTAMP_KEY, parameters,
                                               xes_constants.DEFAULT_TIMESTAMP_KEY)
    case_id_key = exec_utils.get_param_value(Parameters.CASE_ID_KEY, parameters, constants.CASE_CONCEPT_NAME)

    dfg, start_activities, end_activities = pm4py.discover_dfg(log, activity_key=activity_key,
                                                               timestamp_key=timestamp_key,
                                                               case_id_key=case_id_key)
    dfg = {(a, b): int(v) for (a, b), v in dfg.items()}
    start_activities = set(start_activities)
    end_activities = set(end_activities)
    activities = set(act for edge in dfg for act in edge) | start_activities | end_activities
    return dfg, start_activities, end_activities, activities
