"""
Path Merging - Lisp-like Functional Style

Finds "friend of a friend works at" paths with the Pregel BSP executor and
collapses each one into a single edge.

Architecture:
- Every vertex holds the partial matches standing at it (VertexState)
- Each superstep extends them one edge and sends them across
- The run stops when no vertex receives a new partial match

Graph structure:
    alice -knows-> bob -knows-> dave -works_at-> acme
    carol -knows-> alice        erin -works_at-> acme
    bob -knows-> erin           dave -works_at-> initech

Usage:
    python samples/merge_path_example.py
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from MergePath import Edge, TripletPattern, MergePatternPath, graph


PEOPLE = ["alice", "bob", "carol", "dave", "erin"]
COMPANIES = ["acme", "initech"]

EDGES = [
    ("alice", "bob", "knows"),
    ("bob", "dave", "knows"),
    ("carol", "alice", "knows"),
    ("bob", "erin", "knows"),
    ("dave", "acme", "works_at"),
    ("erin", "acme", "works_at"),
    ("dave", "initech", "works_at"),
]


def edge_is(label):
    def triplet_filter(triplet):
        return triplet.attr == label
    triplet_filter.__name__ = f"edge_is_{label}"
    return triplet_filter


def create_graph():
    vertices = {name: {"kind": "person"} for name in PEOPLE}
    vertices.update({name: {"kind": "company"} for name in COMPANIES})
    return graph(vertices, [Edge(*e) for e in EDGES])


def run_merge_path(debug=True, parallel=False):
    print("\033[36m" + "=" * 60 + "\033[0m")
    print("\033[36m    PATH MERGING - LISP-LIKE FUNCTIONAL STYLE\033[0m")
    print("\033[36m" + "=" * 60 + "\033[0m\n")

    print("Graph structure:")
    for src, dst, label in EDGES:
        print(f"  {src} -[{label}]-> {dst}")
    print()

    pattern = [
        TripletPattern(edge_is("knows")),
        TripletPattern(edge_is("knows")),
        TripletPattern(edge_is("works_at")),
    ]
    matcher = MergePatternPath(pattern, merged_edge_attr="friendOfFriendWorksAt",
                               debug=debug, parallel=parallel, max_workers=4)

    g = create_graph()
    merged = matcher.run(g)
    paths = matcher.find_path_matches(g)

    print("\n\033[36m" + "=" * 60 + "\033[0m")
    print("\033[32m    RESULTS\033[0m")
    print(f"\033[35m    Supersteps: {matcher.superstep}\033[0m")
    print(f"\033[35m    Messages: {matcher.messages_sent}\033[0m")
    print("\033[36m" + "=" * 60 + "\033[0m")

    print("\nMerged edges:")
    for edge in merged["edges"]:
        print(f"  {edge.src_id} -[{edge.attr}]-> {edge.dst_id}")

    print("\nMatched paths:")
    for end, matches in paths.items():
        for path in matches:
            print(f"  {end}: {path}")

    return merged, matcher.superstep


def main():
    print("\n" + "=" * 70)
    print("  PATH MERGING TEST")
    print("=" * 70 + "\n")

    merged, supersteps = run_merge_path(debug=True, parallel=True)

    print("\n\033[36m--- VERIFICATION ---\033[0m")

    pairs = sorted((e.src_id, e.dst_id) for e in merged["edges"])
    expected = [("acme", "alice"), ("acme", "alice"), ("initech", "alice")]
    print(f"[{'OK' if pairs == expected else 'FAIL'}] Merged edges: {pairs}")

    print(f"[{'OK' if supersteps <= 3 else 'FAIL'}] Supersteps: {supersteps} (pattern length 3)")

    kinds = {vid: attr["kind"] for vid, attr in merged["vertices"].items()}
    ok_vertices = kinds == {"alice": "person", "acme": "company", "initech": "company"}
    print(f"[{'OK' if ok_vertices else 'FAIL'}] Endpoint attributes preserved: {kinds}")

    if pairs == expected and supersteps <= 3 and ok_vertices:
        print("\n\033[32m[ALL CHECKS PASSED]\033[0m")
    else:
        print("\n\033[31m[SOME CHECKS FAILED]\033[0m")


if __name__ == "__main__":
    main()
