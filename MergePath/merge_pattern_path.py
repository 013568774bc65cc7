"""
Path pattern matching on the Pregel executor.

Finds every directed walk whose edges satisfy an ordered list of
TripletPattern steps and returns a graph with one merged edge per walk,
pointing from the walk's end vertex back to its start vertex.

    g = graph({"A": 1, "B": 2, "C": 3}, [Edge("A", "B", "x"), Edge("B", "C", "y")])
    merged = merge_pattern_path(g, [TripletPattern(), TripletPattern()])
    # merged["vertices"] == {"A": 1, "C": 3}
    # merged["edges"] == [Edge("C", "A", "mergedEdge")]

Every vertex starts with the empty partial match. Each superstep extends the
partial matches held at both endpoints of every edge by one step, sends the
extensions to the other endpoint and drops those the receiver already holds.
The run is quiescent after at most len(pattern) supersteps.
"""

from .graph import Edge, get_edges, graph, map_vertices, num_edges, num_vertices
from .patterns import PartialPathMatch, TripletPattern, VertexState
from .pregel_core import pregel, run
from .utils import stringify_truncated


DEFAULT_MERGED_EDGE_ATTR = "mergedEdge"

NO_MESSAGE = frozenset()

# A partial match grows along in-edges as well as out-edges of the vertex
# holding it, so every edge touching a vertex that received one is rescanned.
MATCH_ACTIVE_DIRECTIONS = ("either", None)


def validate_pattern(pattern):
    """Return the pattern as a tuple of TripletPattern, or raise ValueError."""
    try:
        steps = tuple(pattern)
    except TypeError:
        raise ValueError(f"\033[31mPattern must be a sequence of TripletPattern, got {pattern!r}\033[0m")
    for step in steps:
        if not isinstance(step, TripletPattern):
            raise ValueError(f"\033[31mPattern step is not a TripletPattern: {step!r}\033[0m")
    return steps


def validate_active_direction(active_direction):
    if active_direction not in MATCH_ACTIVE_DIRECTIONS:
        raise ValueError(
            f"\033[31mactive_direction must be \"either\" or None for path matching, got {active_direction!r}\033[0m"
        )
    return active_direction


def seed_partial_matches(pattern):
    """The single empty partial match every vertex starts from."""
    return frozenset([PartialPathMatch((), pattern)])


def initial_vertex_states(g, pattern):
    """Attach a VertexState holding the empty partial match to every vertex."""
    seed = seed_partial_matches(validate_pattern(pattern))
    return map_vertices(g, lambda vid, attr: VertexState(attr, seed))


# =============================================================================
# SUPERSTEP FUNCTIONS
# =============================================================================

def merge_partial_matches(vid, state, message):
    """
    Vertex program: keep the partial matches that consumed at least one edge
    and add the incoming ones. Dropping the zero-length seed stops every
    vertex from re-seeding the search each superstep.
    """
    kept = frozenset(partial for partial in state.partials if partial.matched)
    return VertexState(state.attr, kept | (message or NO_MESSAGE))


def _extend_all(partials, current_vertex, triplet):
    extended = set()
    for partial in partials:
        new_partial = partial.try_match(current_vertex, triplet)
        if new_partial is not None:
            extended.add(new_partial)
    return extended


def send_partial_matches(triplet):
    """
    Edge function: extend the partial matches standing at each endpoint
    across this edge and address them to the opposite endpoint.

    Extensions the receiver already holds are not sent again. Returns at
    most two (vid, frozenset) messages.
    """
    src_partials = triplet.src_attr.partials
    dst_partials = triplet.dst_attr.partials

    msgs_for_dst = frozenset(
        p for p in _extend_all(src_partials, triplet.src_id, triplet) if p not in dst_partials
    )
    msgs_for_src = frozenset(
        p for p in _extend_all(dst_partials, triplet.dst_id, triplet) if p not in src_partials
    )

    messages = []
    if msgs_for_src:
        messages.append((triplet.src_id, msgs_for_src))
    if msgs_for_dst:
        messages.append((triplet.dst_id, msgs_for_dst))
    return messages


def reduce_partial_matches(a, b):
    """Message combiner: set union."""
    return a | b


# =============================================================================
# EXTRACTION
# =============================================================================

def completed_paths(final_graph):
    """Yield (start_vid, end_vid, partial) for every complete partial match."""
    for vid, state in final_graph["vertices"].items():
        for partial in state.partials:
            if partial.is_complete:
                yield partial.get_complete_match_src(vid), vid, partial


def extract_merged_graph(final_graph, merged_edge_attr=DEFAULT_MERGED_EDGE_ATTR, distinct_edges=False):
    """
    Build the output graph from converged vertex states.

    Vertices are the start and end of every completed path, with their
    original attributes. Each completed path becomes one edge from its end
    vertex to its start vertex labeled merged_edge_attr; with
    distinct_edges=True paths sharing both endpoints collapse to one edge.
    """
    endpoints = set()
    edges = []
    seen = set()

    for start, end, _ in completed_paths(final_graph):
        endpoints.add(start)
        endpoints.add(end)
        if distinct_edges:
            if (end, start) in seen:
                continue
            seen.add((end, start))
        edges.append(Edge(end, start, merged_edge_attr))

    vertices = {
        vid: state.attr
        for vid, state in final_graph["vertices"].items()
        if vid in endpoints
    }
    return graph(vertices, edges)


# =============================================================================
# ENTRY POINTS
# =============================================================================

def match_partial_paths(g, pattern, debug=False, parallel=False, max_workers=None,
                        max_supersteps=1000, active_direction="either"):
    """
    Run the matching to quiescence.

    Returns:
        (final_graph, p) - the graph with converged VertexState attributes and
        the executor state (for superstep and message counts)
    """
    pattern = validate_pattern(pattern)
    validate_active_direction(active_direction)
    p = pregel(
        initial_vertex_states(g, pattern),
        seed_partial_matches(pattern),
        merge_partial_matches,
        send_partial_matches,
        reduce_partial_matches,
        empty_message=NO_MESSAGE,
        active_direction=active_direction,
        debug=debug,
        parallel=parallel,
        max_workers=max_workers
    )
    final_graph = run(p, max_supersteps=max_supersteps)
    return final_graph, p


def merge_pattern_path(g, pattern, merged_edge_attr=DEFAULT_MERGED_EDGE_ATTR, distinct_edges=False,
                       debug=False, parallel=False, max_workers=None, max_supersteps=1000,
                       active_direction="either"):
    """
    Find every walk matching pattern and merge each into a single edge.

    Args:
        g: Input graph dict
        pattern: Sequence of TripletPattern, in traversal order
        merged_edge_attr: Attribute of every output edge
        distinct_edges: Collapse paths with identical endpoints into one edge
        debug, parallel, max_workers, max_supersteps:
            Executor options (see pregel_core.pregel)
        active_direction: "either" (default) or None; the other executor
            directions would skip edges a partial match can still extend along

    Returns:
        Graph of path endpoints with one end -> start edge per matched path
    """
    final_graph, _ = match_partial_paths(
        g, pattern, debug=debug, parallel=parallel, max_workers=max_workers,
        max_supersteps=max_supersteps, active_direction=active_direction
    )
    merged = extract_merged_graph(final_graph, merged_edge_attr, distinct_edges)

    if debug:
        print(f"\033[36m[EXTRACT] {num_vertices(merged)} vertices, {num_edges(merged)} merged edges: "
              f"{stringify_truncated(get_edges(merged))}\033[0m")

    return merged


def collect_path_matches(final_graph):
    """Group the completed matches of a converged graph by end vertex."""
    matches = {}
    for _, end, partial in completed_paths(final_graph):
        matches.setdefault(end, []).append(partial.to_complete_match())
    for paths in matches.values():
        paths.sort(key=str)
    return matches


def find_path_matches(g, pattern, **options):
    """
    Like merge_pattern_path but keeps the matched edges.

    Returns:
        Dict of end vertex id -> list of PathMatch ending there
    """
    final_graph, _ = match_partial_paths(g, pattern, **options)
    return collect_path_matches(final_graph)


# =============================================================================
# OOP WRAPPER CLASS
# =============================================================================

class MergePatternPath:
    """
    Reusable matcher for one pattern:
        matcher = MergePatternPath([TripletPattern(), TripletPattern()])
        merged = matcher.run(g)
        print(matcher.superstep)
    """

    def __init__(self, pattern, merged_edge_attr=DEFAULT_MERGED_EDGE_ATTR, distinct_edges=False,
                 debug=False, parallel=False, max_workers=None, max_supersteps=1000,
                 active_direction="either"):
        self.pattern = validate_pattern(pattern)
        self.merged_edge_attr = merged_edge_attr
        self.distinct_edges = distinct_edges
        self.options = {
            "debug": debug,
            "parallel": parallel,
            "max_workers": max_workers,
            "max_supersteps": max_supersteps,
            "active_direction": validate_active_direction(active_direction)
        }
        self._p = None
        self._final_graph = None

    def _match(self, g):
        self._final_graph, self._p = match_partial_paths(g, self.pattern, **self.options)
        return self._final_graph

    def run(self, g):
        merged = extract_merged_graph(self._match(g), self.merged_edge_attr, self.distinct_edges)
        if self.options["debug"]:
            print(f"\033[36m[EXTRACT] {num_vertices(merged)} vertices, {num_edges(merged)} merged edges\033[0m")
        return merged

    def find_path_matches(self, g):
        return collect_path_matches(self._match(g))

    @property
    def final_graph(self):
        return self._final_graph

    @property
    def superstep(self):
        return self._p["superstep"] if self._p else 0

    @property
    def messages_sent(self):
        return self._p["messages_sent"] if self._p else 0
