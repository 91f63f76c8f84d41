import tempfile
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from graphviz import Digraph
from pm4py.objects.process_tree.obj import Operator, ProcessTree
from pm4py.util import exec_utils

from ocpt_miner import tree_utils

operators_mapping = {Operator.SEQUENCE: "seq", Operator.XOR: "xor", Operator.PARALLEL: "and",
                     Operator.LOOP: "xor loop"}


class Parameters(Enum):
    FORMAT = "format"
    FONT_SIZE = "font_size"
    BGCOLOR = "bgcolor"
    COLOR_MAP = "color_map"


def apply(tree: Union[ProcessTree, List[ProcessTree]],
          parameters: Optional[Dict[Union[str, Parameters], Any]] = None) -> Digraph:
    """
    Obtain a Process Tree representation through GraphViz

    Parameters
    -----------
    tree
        Process tree (or process forest, composed in sequence)
    parameters
        Possible parameters of the algorithm:
        - Parameters.FORMAT => image format (default: png)
        - Parameters.FONT_SIZE => font size (default: 15)
        - Parameters.BGCOLOR => background color (default: white)
        - Parameters.COLOR_MAP => activity label -> color

    Returns
    -----------
    gviz
        GraphViz object
    """
    if isinstance(tree, list):
        tree = tree_utils.merge_forest(tree)
    if parameters is None:
        parameters = {}

    filename = tempfile.NamedTemporaryFile(suffix='.gv')

    bgcolor = exec_utils.get_param_value(Parameters.BGCOLOR, parameters, "white")
    image_format = exec_utils.get_param_value(Parameters.FORMAT, parameters, "png")
    color_map = exec_utils.get_param_value(Parameters.COLOR_MAP, parameters, {})
    font_size = str(exec_utils.get_param_value(Parameters.FONT_SIZE, parameters, 15))

    viz = Digraph("pt", filename=filename.name, engine='dot', graph_attr={'bgcolor': bgcolor})
    viz.attr('node', shape='ellipse', fixedsize='false')

    if tree is not None:
        for node in tree_utils.get_nodes(tree):
            node_id = str(id(node))
            if node.operator is not None:
                viz.node(node_id, operators_mapping[node.operator], fontsize=font_size)
            elif node.label is None:
                viz.node(node_id, style='filled', fillcolor='black', shape='point', width="0.075",
                         fontsize=font_size)
            else:
                node_color = color_map.get(node.label, "black")
                viz.node(node_id, node.label, color=node_color, fontcolor=node_color, fontsize=font_size)
            for child in node.children:
                viz.edge(node_id, str(id(child)), dirType='none')

    viz.attr(overlap='false')
    viz.attr(splines='false')
    viz.format = image_format

    return viz
