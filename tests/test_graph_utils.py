import networkx as nx

from ocpt_miner import graph_utils


class TestDfgHelpers:
    def test_clean_dfg_drops_unobserved_edges(self):
        dfg = {("A", "B"): 2, ("B", "A"): 0}
        assert graph_utils.clean_dfg(dfg) == {("A", "B"): 2}

    def test_filter_dfg(self):
        dfg = {("A", "B"): 1, ("B", "C"): 1, ("C", "A"): 1}
        assert graph_utils.filter_dfg(dfg, {"A", "B"}) == {("A", "B"): 1}

    def test_to_nx_graph_keeps_isolated_activities(self):
        graph = graph_utils.to_nx_graph({("A", "B"): 3}, {"A", "B", "C"})
        assert sorted(graph.nodes) == ["A", "B", "C"]
        assert graph["A"]["B"]["weight"] == 3

    def test_start_and_end_activities_of_a_subset(self):
        dfg = {("A", "B"): 1, ("B", "C"): 1}
        starts, ends = graph_utils.get_start_and_end_activities(dfg, {"B", "C"}, {"A"}, {"C"})
        assert starts == {"B"}
        assert ends == {"C"}

        starts, ends = graph_utils.get_start_and_end_activities(dfg, {"A", "B"}, {"A"}, {"C"})
        assert starts == {"A"}
        assert ends == {"B"}


class TestConnectedComponents:
    def test_components_in_sorted_order(self):
        dfg = {("A", "B"): 1, ("D", "C"): 2}
        components = graph_utils.connected_components(dfg, {"A", "B", "C", "D", "E"})
        assert components == [{"A", "B"}, {"C", "D"}, {"E"}]

    def test_edges_outside_the_activities_are_ignored(self):
        dfg = {("A", "X"): 1, ("X", "B"): 1}
        assert graph_utils.connected_components(dfg, {"A", "B"}) == [{"A"}, {"B"}]

    def test_zero_count_is_not_an_edge(self):
        assert graph_utils.connected_components({("A", "B"): 0}, {"A", "B"}) == [{"A"}, {"B"}]

    def test_same_partition_as_networkx(self, random_dfgs):
        for dfg, activities, _, _ in random_dfgs:
            expected = set(frozenset(c) for c in
                           nx.weakly_connected_components(graph_utils.to_nx_graph(dfg, activities)))
            found = graph_utils.connected_components(dfg, activities)
            assert set(frozenset(c) for c in found) == expected
            assert sum(len(c) for c in found) == len(activities)


class TestStronglyConnectedComponents:
    def test_cycles_and_singletons(self):
        dfg = {("A", "B"): 1, ("B", "A"): 1, ("B", "C"): 1, ("C", "D"): 1, ("D", "C"): 1}
        sccs = graph_utils.strongly_connected_components(dfg, {"A", "B", "C", "D", "E"})
        assert set(frozenset(scc) for scc in sccs) == {frozenset({"A", "B"}), frozenset({"C", "D"}),
                                                       frozenset({"E"})}

    def test_sorted_by_smallest_label(self):
        dfg = {("D", "C"): 1, ("C", "D"): 1, ("C", "B"): 1, ("B", "A"): 1}
        sccs = graph_utils.strongly_connected_components(dfg, {"A", "B", "C", "D"})
        assert sccs == [["A"], ["B"], ["C", "D"]]

    def test_same_partition_as_networkx(self, random_dfgs):
        for dfg, activities, _, _ in random_dfgs:
            expected = set(frozenset(c) for c in
                           nx.strongly_connected_components(graph_utils.to_nx_graph(dfg, activities)))
            found = graph_utils.strongly_connected_components(dfg, activities)
            assert set(frozenset(c) for c in found) == expected

    def test_long_chain_does_not_hit_the_recursion_limit(self):
        labels = ["a%05d" % i for i in range(3000)]
        dfg = {(labels[i], labels[i + 1]): 1 for i in range(len(labels) - 1)}
        sccs = graph_utils.strongly_connected_components(dfg, labels)
        assert len(sccs) == 3000
        assert sccs[0] == [labels[0]]

    def test_scc_dag(self):
        dfg = {("A", "B"): 1, ("B", "A"): 1, ("B", "C"): 1}
        sccs = [["A", "B"], ["C"], ["D"]]
        dag, activity_to_scc = graph_utils.scc_dag(sccs, dfg)
        assert sorted(dag.nodes) == [0, 1, 2]
        assert sorted(dag.edges) == [(0, 1)]
        assert activity_to_scc == {"A": 0, "B": 0, "C": 1, "D": 2}
        assert nx.is_directed_acyclic_graph(dag)


class TestReachability:
    def test_is_reachable_terminates_on_cycles(self):
        dfg = {("A", "B"): 1, ("B", "A"): 1}
        assert graph_utils.is_reachable(dfg, "A", "B")
        assert graph_utils.is_reachable(dfg, "A", "A")
        assert not graph_utils.is_reachable(dfg, "A", "C")

    def test_is_reachable_in_dag(self, chain_dfg):
        sccs = graph_utils.strongly_connected_components(chain_dfg, {"A", "B", "C", "D"})
        dag, activity_to_scc = graph_utils.scc_dag(sccs, chain_dfg)
        assert graph_utils.is_reachable_in_dag(dag, activity_to_scc["A"], activity_to_scc["D"])
        assert not graph_utils.is_reachable_in_dag(dag, activity_to_scc["D"], activity_to_scc["A"])

    def test_is_reachable_excluding(self):
        dfg = {("A", "B"): 1, ("B", "C"): 1, ("A", "D"): 1, ("D", "C"): 1}
        assert graph_utils.is_reachable_excluding({"A"}, "C", {"B"}, dfg)
        assert not graph_utils.is_reachable_excluding({"A"}, "C", {"B", "D"}, dfg)

    def test_is_reachable_excluding_with_successors(self):
        dfg = {("A", "B"): 1, ("B", "C"): 1, ("A", "D"): 1, ("D", "C"): 1}
        successors = graph_utils.get_successors(dfg)
        assert successors == {"A": ["B", "D"], "B": ["C"], "D": ["C"]}
        assert graph_utils.is_reachable_excluding({"A"}, "C", {"B"}, dfg, successors=successors)
        assert not graph_utils.is_reachable_excluding({"A"}, "C", {"B", "D"}, dfg, successors=successors)

    def test_excluded_target_is_still_reached(self):
        dfg = {("A", "B"): 1}
        assert graph_utils.is_reachable_excluding({"A"}, "B", {"B"}, dfg)

    def test_excluded_start_is_not_expanded(self):
        dfg = {("A", "B"): 1, ("B", "C"): 1}
        assert not graph_utils.is_reachable_excluding({"A"}, "C", {"A"}, dfg)
