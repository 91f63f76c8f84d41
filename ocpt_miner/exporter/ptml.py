import copy
import uuid
from typing import Any, Dict, List, Optional, Union

from lxml import etree
from pm4py.objects.process_tree.obj import Operator, ProcessTree

from ocpt_miner import tree_utils

OPERATOR_TAGS = {
    Operator.SEQUENCE: "sequence",
    Operator.XOR: "xor",
    Operator.PARALLEL: "and",
    Operator.LOOP: "xorLoop",
}


def export_ptree_tree(tree: Union[ProcessTree, List[ProcessTree]], parameters: Optional[Dict[Any, Any]] = None):
    """
    Exports the XML tree from a process tree

    Parameters
    -----------------
    tree
        Process tree (or process forest, composed in sequence)
    parameters
        Parameters of the algorithm

    Returns
    -----------------
    xml_tree
        XML tree object
    """
    if isinstance(tree, list):
        tree = tree_utils.merge_forest(tree)
        if tree is None:
            raise ValueError("Cannot export an empty process forest")
    tree = copy.deepcopy(tree)
    if parameters is None:
        parameters = {}

    nodes = tree_utils.get_nodes(tree)

    # make sure that in the exporting, loops have 3 children
    # (for ProM compatibility)
    # just add a skip as third child
    for node in nodes:
        if node.operator == Operator.LOOP and len(node.children) < 3:
            third_children = ProcessTree(operator=None, label=None)
            third_children.parent = node
            node.children.append(third_children)

    # repeat (structure has changed)
    nodes = tree_utils.get_nodes(tree)
    nodes_dict = {id(x): str(uuid.uuid4()) for x in nodes}

    root = etree.Element("ptml")
    processtree = etree.SubElement(root, "processTree")
    processtree.set("name", str(uuid.uuid4()))
    processtree.set("root", nodes_dict[id(tree)])
    processtree.set("id", str(uuid.uuid4()))

    for node in nodes:
        nk = nodes_dict[id(node)]
        if node.operator is None:
            if node.label is None:
                child = etree.SubElement(processtree, "automaticTask")
                child.set("name", "")
            else:
                child = etree.SubElement(processtree, "manualTask")
                child.set("name", node.label)
        else:
            child = etree.SubElement(processtree, OPERATOR_TAGS[node.operator])
            child.set("name", "")
        child.set("id", nk)

    for node in nodes:
        for node_child in node.children:
            child = etree.SubElement(processtree, "parentsNode")
            child.set("sourceId", nodes_dict[id(node)])
            child.set("targetId", nodes_dict[id(node_child)])
            child.set("id", str(uuid.uuid4()))

    return etree.ElementTree(root)


def export_tree_as_string(tree: Union[ProcessTree, List[ProcessTree]],
                          parameters: Optional[Dict[Any, Any]] = None) -> bytes:
    """
    Exports a process tree (or forest) to a PTML string
    """
    xml_tree = export_ptree_tree(tree, parameters=parameters)
    return etree.tostring(xml_tree, pretty_print=True, xml_declaration=True, encoding="utf-8")


def apply(tree: Union[ProcessTree, List[ProcessTree]], output_path: str,
          parameters: Optional[Dict[Any, Any]] = None):
    """
    Exports the process tree to a XML (.PTML) file

    Parameters
    ----------------
    tree
        Process tree (or process forest)
    output_path
        Output path
    parameters
        Parameters
    """
    if parameters is None:
        parameters = {}

    # gets the XML tree
    xml_tree = export_ptree_tree(tree, parameters=parameters)

    # exports the tree to a file
    xml_tree.write(output_path, pretty_print=True, xml_declaration=True, encoding="utf-8")

    return xml_tree
