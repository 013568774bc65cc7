__version__ = "0.1.0"

from .graph import (
    Edge,
    EdgeTriplet,
    graph,
    map_vertices,
    triplets
)
from .pregel_core import (
    Pregel,
    pregel,
    run,
    run_step,
    reset,
    get_checkpoint,
    restore_checkpoint
)
from .patterns import (
    TripletPattern,
    TripletMatch,
    PathMatch,
    PartialPathMatch,
    VertexState,
    accept_all
)
from .merge_pattern_path import (
    MergePatternPath,
    merge_pattern_path,
    find_path_matches,
    initial_vertex_states,
    merge_partial_matches,
    send_partial_matches,
    reduce_partial_matches,
    extract_merged_graph,
    DEFAULT_MERGED_EDGE_ATTR
)
