import argparse
import os
from typing import List, Optional

import pm4py

from ocpt_miner import algorithm, dfg_discovery
from ocpt_miner.exporter import hierarchy, ptml
from ocpt_miner.fall_through import FallthroughStrategy
from ocpt_miner.logger import logger, set_level


def import_xes(file_path: List[str], output_dir: str, fallthrough_strategy: str = FallthroughStrategy.FLOWER.name,
               activity_key: Optional[str] = None, fork_join: bool = False):
    params = {
        algorithm.Parameters.FALLTHROUGH_STRATEGY: fallthrough_strategy,
        algorithm.Parameters.FORK_JOIN: fork_join,
    }
    if activity_key is not None:
        params[dfg_discovery.Parameters.ACTIVITY_KEY] = activity_key

    os.makedirs(output_dir, exist_ok=True)
    forests = {}
    for file_name in file_path:
        process_name = os.path.basename(file_name).split('.')[0]
        log = pm4py.read_xes(file_name)
        logger.info('Imported {} events from {}'.format(len(log), file_name))
        forest = algorithm.apply_log(log, parameters=params)
        if not forest:
            logger.warning('No activities found in {}'.format(file_name))
            continue
        logger.info('Process tree of {}: {}'.format(process_name, forest))
        ptml.apply(forest, os.path.join(output_dir, process_name + '.ptml'))
        hierarchy.apply(forest, os.path.join(output_dir, process_name + '.json'))
        forests[process_name] = forest
    return forests


def main(args=None):
    parser = argparse.ArgumentParser(description='Discovers a process tree from each XES log')
    parser.add_argument('logs', nargs='+', help='XES files')
    parser.add_argument('-o', '--output-dir', default='.', help='directory of the PTML and JSON outputs')
    parser.add_argument('--fallthrough', default=FallthroughStrategy.FLOWER.name,
                        choices=[s.name for s in FallthroughStrategy], help='first fallthrough strategy tried')
    parser.add_argument('--activity-key', default=None, help='event attribute holding the activity')
    parser.add_argument('--fork-join', action='store_true', help='mine the branches of a cut concurrently')
    parser.add_argument('--log-level', default='INFO')
    args = parser.parse_args(args)

    set_level(args.log_level)
    import_xes(args.logs, args.output_dir, fallthrough_strategy=args.fallthrough, activity_key=args.activity_key,
               fork_join=args.fork_join)


if __name__ == "__main__":
    main()
