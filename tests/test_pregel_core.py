import unittest
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from MergePath.graph import Edge, graph
from MergePath.pregel_core import (
    Pregel, pregel, run, run_step, reset, get_checkpoint, restore_checkpoint,
    get_graph, get_superstep, get_active, is_halted, _partition
)


def max_vprog(vid, state, message):
    if message is None:
        return state
    return max(state, message)


def max_send(triplet):
    if triplet.src_attr > triplet.dst_attr:
        return [(triplet.dst_id, triplet.src_attr)]
    if triplet.dst_attr > triplet.src_attr:
        return [(triplet.src_id, triplet.dst_attr)]
    return []


def square_graph():
    #   1 -- 2
    #   |    |
    #   3 -- 4
    return graph(
        {1: 3, 2: 6, 3: 2, 4: 1},
        [Edge(1, 2, None), Edge(1, 3, None), Edge(2, 4, None), Edge(3, 4, None)]
    )


def max_value_pregel(**kwargs):
    kwargs.setdefault("debug", False)
    return pregel(square_graph(), None, max_vprog, max_send, max, **kwargs)


class TestPregelCore(unittest.TestCase):

    def test_pregel_initialization(self):
        p = max_value_pregel()
        self.assertEqual(p["type"], "Pregel")
        self.assertEqual(p["superstep"], 0)
        self.assertEqual(len(p["vertex_channels"]), 4)
        self.assertEqual(len(p["inbox_channels"]), 4)
        self.assertFalse(p["initialized"])

    def test_parallel_initialization(self):
        p = max_value_pregel(parallel=True, max_workers=4)
        self.assertTrue(p["parallel"])
        self.assertEqual(p["max_workers"], 4)

    def test_invalid_active_direction(self):
        with self.assertRaises(ValueError):
            max_value_pregel(active_direction="sideways")

    def test_invalid_max_workers(self):
        with self.assertRaises(ValueError):
            max_value_pregel(max_workers=0)

    def test_negative_max_supersteps(self):
        with self.assertRaises(ValueError):
            run(max_value_pregel(), max_supersteps=-1)

    def test_maximum_value_propagation(self):
        """Maximum Value from the Pregel paper: every vertex converges to 6."""
        p = max_value_pregel()
        final = run(p)
        self.assertEqual(final["vertices"], {1: 6, 2: 6, 3: 6, 4: 6})
        self.assertEqual(get_superstep(p), 2)
        self.assertTrue(is_halted(p))

    def test_final_graph_keeps_edges(self):
        p = max_value_pregel()
        final = run(p)
        self.assertEqual(final["edges"], square_graph()["edges"])

    def test_max_supersteps_bounds_execution(self):
        p = max_value_pregel()
        final = run(p, max_supersteps=1)
        self.assertEqual(get_superstep(p), 1)
        self.assertEqual(final["vertices"][3], 3)
        self.assertFalse(is_halted(p))

    def test_zero_supersteps_only_initializes(self):
        calls = []

        def vprog(vid, state, message):
            calls.append((vid, message))
            return state

        p = pregel(square_graph(), "hello", vprog, max_send, max, debug=False)
        final = run(p, max_supersteps=0)
        self.assertEqual(sorted(calls), [(1, "hello"), (2, "hello"), (3, "hello"), (4, "hello")])
        self.assertEqual(final["vertices"], square_graph()["vertices"])

    def test_run_step(self):
        p = max_value_pregel()

        p, info = run_step(p)
        self.assertEqual(info["superstep"], 1)
        self.assertEqual(info["messages_sent"], 4)
        self.assertEqual(info["edges_scanned"], 4)
        self.assertEqual(info["active_vertices"], {1, 3, 4})

        p, info = run_step(p)
        self.assertEqual(info["superstep"], 2)
        self.assertEqual(info["messages_sent"], 2)
        self.assertEqual(info["active_vertices"], {3})

        p, info = run_step(p)
        self.assertIsNone(info)
        p, info = run_step(p)
        self.assertIsNone(info)

    def test_messages_not_visible_in_same_superstep(self):
        """A message travels one edge per superstep, never two."""
        def vprog(vid, state, message):
            return message if message is not None else state

        def send(triplet):
            if triplet.src_attr == 1 and triplet.dst_attr == 0:
                return [(triplet.dst_id, 1)]
            return []

        g = graph({"a": 1, "b": 0, "c": 0}, [Edge("a", "b", None), Edge("b", "c", None)])
        p = pregel(g, None, vprog, send, max, debug=False)

        p, info = run_step(p)
        self.assertEqual(get_graph(p)["vertices"], {"a": 1, "b": 1, "c": 0})

        final = run(p)
        self.assertEqual(final["vertices"], {"a": 1, "b": 1, "c": 1})
        self.assertEqual(get_superstep(p), 2)

    def test_vertices_without_messages_see_empty_message(self):
        seen = {}

        def vprog(vid, state, message):
            seen.setdefault(vid, []).append(message)
            return state

        def send(triplet):
            if triplet.src_attr == "go":
                return [(triplet.dst_id, "msg")]
            return []

        g = graph({"a": "go", "b": "x", "c": "x"}, [Edge("a", "b", None)])
        p = pregel(g, "init", vprog, send, lambda x, y: x, empty_message="nothing", debug=False)
        p, info = run_step(p)
        self.assertEqual(seen["b"], ["init", "msg"])
        self.assertEqual(seen["c"], ["init", "nothing"])

    def test_empty_message_is_not_combined_with_real_messages(self):
        """A vertex that got messages sees only their reduction."""
        received = {}

        def vprog(vid, state, message):
            received[vid] = message
            return state

        def send(triplet):
            return [(triplet.dst_id, triplet.src_attr)]

        g = graph({"hub": 100, "x": 5, "y": 3}, [Edge("x", "hub", None), Edge("y", "hub", None)])
        p = pregel(g, None, vprog, send, min, empty_message=0, debug=False)
        run_step(p)
        self.assertEqual(received["hub"], 3)
        self.assertEqual(received["x"], 0)

    def test_messages_are_reduced_per_vertex(self):
        received = {}

        def vprog(vid, state, message):
            if message:
                received[vid] = message
            return state

        def send(triplet):
            if triplet.src_attr == "hub":
                return []
            return [(triplet.dst_id, frozenset([triplet.src_id]))]

        g = graph(
            {"hub": "hub", "x": 1, "y": 2, "z": 3},
            [Edge("x", "hub", None), Edge("y", "hub", None), Edge("z", "hub", None)]
        )
        p = pregel(g, None, vprog, send, lambda a, b: a | b, empty_message=frozenset(), debug=False)
        run_step(p)
        self.assertEqual(received["hub"], frozenset({"x", "y", "z"}))

    def test_active_direction_out_only_scans_out_edges(self):
        p = max_value_pregel(active_direction="out")
        p, info = run_step(p)
        p, info = run_step(p)
        # active after the first superstep: {1, 3, 4}; edges with such a source
        self.assertEqual(info["edges_scanned"], 3)

    def test_active_direction_none_scans_every_edge(self):
        p = max_value_pregel(active_direction=None)
        final = run(p)
        self.assertEqual(final["vertices"], {1: 6, 2: 6, 3: 6, 4: 6})

    def test_active_direction_both(self):
        p = max_value_pregel(active_direction="both")
        run_step(p)
        p, info = run_step(p)
        # 1-3 and 3-4 have both endpoints in {1, 3, 4}
        self.assertEqual(info["edges_scanned"], 2)

    def test_parallel_matches_sequential(self):
        sequential = run(max_value_pregel())
        parallel = run(max_value_pregel(parallel=True, max_workers=3))
        self.assertEqual(sequential["vertices"], parallel["vertices"])

    def test_message_to_unknown_vertex(self):
        def send(triplet):
            return [("nowhere", 1)]

        p = pregel(square_graph(), None, max_vprog, send, max, debug=False)
        with self.assertRaises(ValueError):
            run(p)

    def test_vertex_program_errors_propagate(self):
        def vprog(vid, state, message):
            raise RuntimeError("boom")

        p = pregel(square_graph(), None, vprog, max_send, max, debug=False)
        with self.assertRaises(RuntimeError):
            run(p)

    def test_send_errors_propagate_in_parallel_mode(self):
        def send(triplet):
            raise KeyError("bad edge")

        p = pregel(square_graph(), None, max_vprog, send, max, debug=False,
                   parallel=True, max_workers=2)
        with self.assertRaises(KeyError):
            run(p)

    def test_empty_graph(self):
        p = pregel(graph(), None, max_vprog, max_send, max, debug=False)
        final = run(p)
        self.assertEqual(final["vertices"], {})
        self.assertEqual(get_superstep(p), 0)

    def test_checkpoint_and_restore(self):
        p = max_value_pregel()
        run_step(p)
        checkpoint = get_checkpoint(p)

        run(p)
        self.assertEqual(get_graph(p)["vertices"][3], 6)

        restore_checkpoint(p, checkpoint)
        self.assertEqual(get_superstep(p), 1)
        self.assertEqual(get_graph(p)["vertices"][3], 3)
        self.assertEqual(get_active(p), {1, 3, 4})
        self.assertFalse(is_halted(p))

        final = run(p)
        self.assertEqual(final["vertices"][3], 6)
        self.assertEqual(get_superstep(p), 2)

    def test_reset(self):
        p = max_value_pregel()
        run(p)
        reset(p)
        self.assertEqual(get_superstep(p), 0)
        self.assertFalse(is_halted(p))
        self.assertEqual(get_graph(p)["vertices"], square_graph()["vertices"])

        final = run(p)
        self.assertEqual(final["vertices"], {1: 6, 2: 6, 3: 6, 4: 6})

    def test_partition(self):
        parts = _partition(range(7), 3)
        self.assertEqual(parts, [[0, 3, 6], [1, 4], [2, 5]])
        self.assertEqual(_partition([1], 8), [[1]])
        self.assertEqual(_partition([], 4), [[]])


class TestPregelWrapper(unittest.TestCase):

    def test_run(self):
        bsp = Pregel(square_graph(), None, max_vprog, max_send, max, debug=False)
        final = bsp.run()
        self.assertEqual(final["vertices"], {1: 6, 2: 6, 3: 6, 4: 6})
        self.assertEqual(bsp.superstep, 2)
        self.assertTrue(bsp.halted)
        self.assertEqual(bsp.messages_sent, 6)

    def test_properties(self):
        bsp = Pregel(square_graph(), None, max_vprog, max_send, max, debug=False,
                     parallel=True, max_workers=2)
        self.assertFalse(bsp.debug)
        self.assertTrue(bsp.parallel)
        self.assertEqual(bsp.max_workers, 2)
        self.assertEqual(bsp.active, set())

    def test_run_step_and_checkpoint(self):
        bsp = Pregel(square_graph(), None, max_vprog, max_send, max, debug=False)
        info = bsp.run_step()
        self.assertEqual(info["superstep"], 1)
        checkpoint = bsp.get_checkpoint()

        bsp.run()
        bsp.restore_checkpoint(checkpoint)
        self.assertEqual(bsp.graph["vertices"][3], 3)

        bsp.reset()
        self.assertEqual(bsp.superstep, 0)


if __name__ == "__main__":
    unittest.main()
