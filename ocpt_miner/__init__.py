from ocpt_miner import algorithm, cuts, dfg_discovery, exporter, fall_through, graph_utils, tree_utils, view_tree
from ocpt_miner.algorithm import Parameters
from ocpt_miner.algorithm import apply as mine
from ocpt_miner.fall_through import FallthroughStrategy

__version__ = "0.1.0"
