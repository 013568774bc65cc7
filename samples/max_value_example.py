"""
Maximum Value Example - Lisp-like Functional Style

This implements the Maximum Value algorithm from the original Pregel paper
on the same executor the path matcher runs on.

Each vertex propagates the maximum value it has seen to its neighbors.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from MergePath.graph import Edge, graph
from MergePath.pregel_core import pregel, run, run_step, get_superstep


def vertex_program(vid, value, message):
    if message is not None and message > value:
        print(f"    Node {vid}: Updating value from {value} to {message}")
        return message
    return value


def send_message(triplet):
    if triplet.src_attr > triplet.dst_attr:
        return [(triplet.dst_id, triplet.src_attr)]
    if triplet.dst_attr > triplet.src_attr:
        return [(triplet.src_id, triplet.dst_attr)]
    return []


def run_maximum_value_example():
    print("\033[36m=== PREGEL MAXIMUM VALUE EXAMPLE ===\033[0m")
    print("This implements the Maximum Value algorithm from the original Pregel paper")
    print("Each vertex propagates the maximum value it has seen to its neighbors\n")

    # Graph structure:
    #   1 -- 2
    #   |    |
    #   3 -- 4
    g = graph(
        {1: 3, 2: 6, 3: 2, 4: 1},
        [Edge(1, 2, None), Edge(1, 3, None), Edge(2, 4, None), Edge(3, 4, None)]
    )

    p = pregel(g, None, vertex_program, send_message, max, debug=True)

    print("\nGraph structure:")
    print("  1 -- 2")
    print("  |    |")
    print("  3 -- 4")
    print("\nInitial values: V1=3, V2=6, V3=2, V4=1")
    print("Expected result: All vertices should converge to 6 (the maximum)\n")

    p, info = run_step(p)
    print(f"\n\033[35mFirst superstep: {info['messages_sent']} messages, active {sorted(info['active_vertices'])}\033[0m\n")

    final = run(p, max_supersteps=10)

    print("\n\033[32m=== RESULTS ===\033[0m")
    print(f"Supersteps: {get_superstep(p)}")
    for vid, value in sorted(final["vertices"].items()):
        print(f"  vertex_{vid}: {value}")

    expected = 6
    ok = all(value == expected for value in final["vertices"].values())
    print(f"\nVerification: {'PASS' if ok else 'FAIL'} (expected {expected} everywhere)")


if __name__ == "__main__":
    run_maximum_value_example()
