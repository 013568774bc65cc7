"""
Directed property graph in the same functional dict style as the executor.

A graph is a plain dict:
    {"type": "Graph", "vertices": {vid: attr}, "edges": [Edge, ...]}

Functions take the graph as first argument and return a new graph, so they
compose the same way the executor functions do:
    g = map_vertices(graph({"a": 1}, [Edge("a", "b", "x")]), lambda vid, attr: attr)
"""

from collections import namedtuple


Edge = namedtuple("Edge", ["src_id", "dst_id", "attr"])

# Edge seen together with the current attributes of both endpoints.
EdgeTriplet = namedtuple("EdgeTriplet", ["src_id", "src_attr", "dst_id", "dst_attr", "attr"])


def graph(vertices=None, edges=None, default_vertex_attr=None):
    """
    Build a graph from a vertex mapping and an edge list.

    Args:
        vertices: Mapping (or iterable of pairs) of vertex id -> attribute
        edges: Iterable of Edge or (src_id, dst_id, attr) tuples
        default_vertex_attr: Attribute for vertices only referenced by edges

    Returns:
        New graph dict
    """
    vertex_map = dict(vertices) if vertices else {}
    edge_list = []

    for edge in edges or []:
        if not isinstance(edge, Edge):
            if len(edge) != 3:
                raise ValueError(f"\033[31mEdge must be (src_id, dst_id, attr), got {edge!r}\033[0m")
            edge = Edge(*edge)
        for vid in (edge.src_id, edge.dst_id):
            if vid not in vertex_map:
                vertex_map[vid] = default_vertex_attr
        edge_list.append(edge)

    return {
        "type": "Graph",
        "vertices": vertex_map,
        "edges": edge_list
    }


def map_vertices(g, func):
    """Return a new graph with every vertex attribute replaced by func(vid, attr)."""
    return {
        **g,
        "vertices": {vid: func(vid, attr) for vid, attr in g["vertices"].items()}
    }


def with_vertices(g, vertices):
    """Return a new graph sharing the edges of g with the given vertex attributes."""
    return {**g, "vertices": dict(vertices)}


def triplets(g, edges=None):
    """Yield an EdgeTriplet for every edge (or for the given subset of edges)."""
    vertices = g["vertices"]
    for edge in g["edges"] if edges is None else edges:
        yield EdgeTriplet(edge.src_id, vertices[edge.src_id], edge.dst_id, vertices[edge.dst_id], edge.attr)


def get_vertices(g):
    return g["vertices"]


def get_edges(g):
    return g["edges"]


def num_vertices(g):
    return len(g["vertices"])


def num_edges(g):
    return len(g["edges"])
