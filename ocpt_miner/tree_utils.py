import copy
from typing import Iterable, List, Optional, Union

from pm4py.objects.process_tree.obj import Operator, ProcessTree

TAU_LABEL = "tau"
ASSOCIATIVE_OPERATORS = (Operator.SEQUENCE, Operator.XOR, Operator.PARALLEL)


def leaf(label: str) -> ProcessTree:
    return ProcessTree(operator=None, label=label)


def silent() -> ProcessTree:
    return ProcessTree(operator=None, label=None)


def operator_node(operator: Operator, children: Iterable[ProcessTree], flatten: bool = False) -> ProcessTree:
    """
    Creates an operator node and sets the parent pointers of its children

    Parameters
    -------------
    operator
        Operator of the new node
    children
        Ordered children
    flatten
        If True, children with the same (associative) operator are replaced by their own children,
        e.g. X( 'A', X( 'B', 'C' ) ) becomes X( 'A', 'B', 'C' )

    Returns
    -------------
    node
        The new operator node
    """
    node = ProcessTree(operator=operator)
    for child in children:
        if flatten and operator in ASSOCIATIVE_OPERATORS and child.operator is operator:
            grand_children = child.children
        else:
            grand_children = [child]
        for grand_child in grand_children:
            grand_child.parent = node
            node.children.append(grand_child)
    return node


def get_nodes(tree: Union[ProcessTree, List[ProcessTree]]) -> List[ProcessTree]:
    # using iterative, because recursive might be too heavy in case of large trees
    queue = list(tree) if isinstance(tree, list) else [tree]
    nodes = []
    while len(queue) > 0:
        node = queue.pop(0)
        nodes.append(node)
        queue.extend(node.children)
    return nodes


def get_leaf_labels(tree: Union[ProcessTree, List[ProcessTree]]) -> List[str]:
    """
    Returns the labels of the visible leaves of a tree (or forest), duplicates included
    """
    return [node.label for node in get_nodes(tree) if node.operator is None and node.label is not None]


def merge_forest(forest: List[ProcessTree]) -> Optional[ProcessTree]:
    """
    Merges a process forest into a single tree. A forest with more than one root is
    composed under a sequence

    Parameters
    -------------
    forest
        Process forest

    Returns
    -------------
    tree
        Single process tree (None if the forest is empty)
    """
    if len(forest) <= 0:
        return None
    if len(forest) == 1:
        return forest[0]
    return operator_node(Operator.SEQUENCE, [copy.deepcopy(root) for root in forest])
