"""
Conversion of a process forest into the hierarchy consumed by the display layer, with the object
types of each activity and the interaction patterns (convergent, deficient, divergent) they exhibit.
"""
import json
from typing import Any, Dict, List, Optional

from pm4py.objects.process_tree.obj import Operator, ProcessTree

from ocpt_miner.tree_utils import TAU_LABEL

ObjectTypeMap = Dict[str, List[str]]

OPERATOR_NAMES = {
    Operator.XOR: "xor",
    Operator.SEQUENCE: "sequence",
    Operator.PARALLEL: "parallel",
    Operator.LOOP: "redo",
}


def convert_tree(node: ProcessTree, con: ObjectTypeMap, defi: ObjectTypeMap, div: ObjectTypeMap) -> Dict[str, Any]:
    if node.operator is not None:
        return {
            "value": OPERATOR_NAMES[node.operator],
            "children": [convert_tree(child, con, defi, div) for child in node.children],
        }

    if node.label is None:
        return {"value": {"isSilent": True, "activity": TAU_LABEL, "ots": []}}

    activity = node.label
    ot_set = set(con.get(activity, [])) | set(defi.get(activity, [])) | set(div.get(activity, []))
    ots = []
    for ot in sorted(ot_set):
        exhibits = []
        if ot in con.get(activity, []):
            exhibits.append("con")
        if ot in defi.get(activity, []):
            exhibits.append("def")
        if ot in div.get(activity, []):
            exhibits.append("div")
        object_type = {"ot": ot}
        if exhibits:
            object_type["exhibits"] = exhibits
        ots.append(object_type)

    return {"value": {"activity": activity, "ots": ots}}


def build_output(forest: List[ProcessTree], con: Optional[ObjectTypeMap] = None, defi: Optional[ObjectTypeMap] = None,
                 div: Optional[ObjectTypeMap] = None) -> Dict[str, Any]:
    """
    Builds the hierarchy of a process forest

    Parameters
    -------------
    forest
        Process forest (several roots are composed in sequence)
    con
        Activity -> object types for which the activity is convergent
    defi
        Activity -> object types for which the activity is deficient
    div
        Activity -> object types for which the activity is divergent

    Returns
    -------------
    output
        Dictionary with the sorted list of all the object types ("ots") and the tree ("hierarchy")
    """
    con = con or {}
    defi = defi or {}
    div = div or {}

    all_ots = set()
    for mapping in (con, defi, div):
        for ots in mapping.values():
            all_ots.update(ots)

    if len(forest) == 1:
        hierarchy = convert_tree(forest[0], con, defi, div)
    else:
        hierarchy = {
            "value": OPERATOR_NAMES[Operator.SEQUENCE],
            "children": [convert_tree(root, con, defi, div) for root in forest],
        }

    return {"ots": sorted(all_ots), "hierarchy": hierarchy}


def apply(forest: List[ProcessTree], output_path: str, con: Optional[ObjectTypeMap] = None,
          defi: Optional[ObjectTypeMap] = None, div: Optional[ObjectTypeMap] = None) -> Dict[str, Any]:
    """
    Writes the hierarchy of a process forest to a JSON file
    """
    output = build_output(forest, con=con, defi=defi, div=div)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(output, f, indent=2)
    return output
