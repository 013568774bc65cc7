"""
Pregel BSP (Bulk Synchronous Parallel) graph executor in Lisp-like functional style.

This is the vertex-centric flavor of Pregel: the caller supplies three pure
functions and the executor runs synchronous supersteps until no vertex
receives a message.

    vprog(vid, state, message) -> new_state      # vertex program / merge
    send_msg(triplet) -> iterable of (vid, msg)   # per edge, per superstep
    merge_msg(a, b) -> msg                        # combines messages for one vertex

Each vertex owns two channels:
- a LastValue channel with its state (committed at the barrier)
- an Accumulator channel acting as its inbox, reduced with merge_msg

Example (functional):
    p = pregel(g, 0, vprog, send_msg, max, empty_message=None, debug=False)
    final_graph = run(p, max_supersteps=10)

Example (step by step):
    p = pregel(g, 0, vprog, send_msg, max)
    p, info = run_step(p)
    while info is not None:
        p, info = run_step(p)
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from multiprocessing import cpu_count

from .channels import create_last_value_channel, create_accumulator_channel
from .graph import get_vertices, num_edges, num_vertices, triplets, with_vertices
from .utils import stringify_truncated


ACTIVE_DIRECTIONS = ("either", "both", "out", "in", None)


# =============================================================================
# CORE DATA CONSTRUCTORS
# =============================================================================

def pregel(g, initial_message, vprog, send_msg, merge_msg, empty_message=None,
           active_direction="either", debug=True, parallel=False, max_workers=None):
    """
    Create a new Pregel executor over graph g.

    Args:
        g: Graph dict (see graph.graph)
        initial_message: Message every vertex receives before the first superstep
        vprog: Vertex program (vid, state, message) -> new state
        send_msg: Edge function (EdgeTriplet) -> iterable of (vid, message)
        merge_msg: Commutative, associative message combiner
        empty_message: What vprog receives at a vertex that got no message
        active_direction: Which edges are re-scanned after the first round:
            "either" - an endpoint received a message in the last superstep
            "both"   - both endpoints received a message
            "out"    - the source received a message
            "in"     - the destination received a message
            None     - every edge, every superstep
        debug: Print colored progress lines
        parallel: Run message generation and vertex programs on a thread pool
        max_workers: Number of partitions/threads (default: cpu_count())

    Returns:
        Pregel executor state dict
    """
    if active_direction not in ACTIVE_DIRECTIONS:
        raise ValueError(f"\033[31mUnknown active_direction: {active_direction!r}\033[0m")
    if max_workers is not None and max_workers < 1:
        raise ValueError(f"\033[31mmax_workers must be positive, got {max_workers}\033[0m")

    if debug:
        print("\033[36m[INIT] Pregel BSP Executor initialized\033[0m")
        if parallel:
            print(f"\033[36m[INIT] Parallel mode enabled with {max_workers or cpu_count()} workers\033[0m")

    p = {
        "type": "Pregel",
        "graph": g,
        "initial_message": initial_message,
        "vprog": vprog,
        "send_msg": send_msg,
        "merge_msg": merge_msg,
        "empty_message": empty_message,
        "active_direction": active_direction,
        "vertex_channels": {},
        "inbox_channels": {},
        "superstep": 0,
        "initialized": False,
        "halted": False,
        "active": set(),
        "messages_sent": 0,
        "debug": debug,
        "parallel": parallel,
        "max_workers": max_workers if max_workers else cpu_count()
    }

    for vid, attr in get_vertices(g).items():
        p["vertex_channels"][vid] = create_last_value_channel(attr)
        p["inbox_channels"][vid] = create_accumulator_channel(merge_msg, empty_message)

    if debug:
        print(f"\033[36m[REGISTER] {num_vertices(g)} vertices, {num_edges(g)} edges\033[0m")

    return p


# =============================================================================
# PARTITIONING
# =============================================================================

def _partition(items, num_partitions):
    """Split items round-robin into at most num_partitions non-empty lists."""
    items = list(items)
    num_partitions = max(1, min(num_partitions, len(items)))
    return [items[i::num_partitions] for i in range(num_partitions)]


def _send_partition(send_msg, edge_triplets):
    """Worker: run send_msg over one partition of triplets."""
    messages = []
    for triplet in edge_triplets:
        for vid, msg in send_msg(triplet) or ():
            messages.append((vid, msg))
    return messages


def _vprog_partition(vprog, inputs):
    """Worker: run the vertex program over one partition of (vid, state, message)."""
    return [(vid, vprog(vid, state, message)) for vid, state, message in inputs]


def _map_partitions(p, worker, func, items):
    """Apply worker(func, partition) to every partition, in parallel if enabled."""
    if not (p["parallel"] and len(items) > 1):
        return worker(func, items)

    partitions = _partition(items, p["max_workers"])
    results = []
    with ThreadPoolExecutor(max_workers=len(partitions)) as executor:
        futures = [executor.submit(worker, func, part) for part in partitions]
        for future in as_completed(futures):
            results.extend(future.result())
    return results


# =============================================================================
# EXECUTION
# =============================================================================

def _current_graph(p):
    """Graph with the committed vertex states as vertex attributes."""
    states = {vid: ch["read"]() for vid, ch in p["vertex_channels"].items()}
    return with_vertices(p["graph"], states)


def _edges_in_scope(p):
    """Edges whose triplets are scanned in the coming message round."""
    edges = p["graph"]["edges"]
    direction = p["active_direction"]
    if p["superstep"] == 0 or direction is None:
        return edges

    active = p["active"]
    if direction == "either":
        return [e for e in edges if e.src_id in active or e.dst_id in active]
    if direction == "both":
        return [e for e in edges if e.src_id in active and e.dst_id in active]
    if direction == "out":
        return [e for e in edges if e.src_id in active]
    return [e for e in edges if e.dst_id in active]


def _initialize(p):
    """Deliver initial_message to every vertex."""
    inputs = [(vid, ch["read"](), p["initial_message"]) for vid, ch in p["vertex_channels"].items()]
    for vid, new_state in _map_partitions(p, _vprog_partition, p["vprog"], inputs):
        p["vertex_channels"][vid]["write"](new_state)

    for ch in p["vertex_channels"].values():
        ch["checkpoint"]()
    p["initialized"] = True

    if p["debug"]:
        print(f"\033[35m[INIT] Initial message {stringify_truncated(p['initial_message'])} delivered to {len(inputs)} vertices\033[0m")


def _send_messages(p):
    """Run send_msg over the edges in scope and write into the inboxes."""
    edges = _edges_in_scope(p)
    edge_triplets = list(triplets(_current_graph(p), edges))
    messages = _map_partitions(p, _send_partition, p["send_msg"], edge_triplets)

    for vid, msg in messages:
        if vid not in p["inbox_channels"]:
            raise ValueError(f"\033[31mMessage sent to unknown vertex {vid!r}\033[0m")
        p["inbox_channels"][vid]["write"](msg)
        if p["debug"]:
            print(f"\033[32m[SEND] -> {vid}: {stringify_truncated(msg)}\033[0m")

    p["messages_sent"] += len(messages)
    return len(messages), len(edge_triplets)


def _update(p):
    """BSP barrier: commit every inbox and record which vertices received messages."""
    active = set()
    for vid, inbox in p["inbox_channels"].items():
        inbox["checkpoint"]()
        if inbox["has_updates"]():
            active.add(vid)
        inbox["consume"]()
    p["active"] = active


def _merge(p):
    """Apply the vertex program to every vertex with its committed inbox."""
    inputs = [
        (vid, ch["read"](), p["inbox_channels"][vid]["read"]())
        for vid, ch in p["vertex_channels"].items()
    ]
    for vid, new_state in _map_partitions(p, _vprog_partition, p["vprog"], inputs):
        p["vertex_channels"][vid]["write"](new_state)
        if p["debug"] and vid in p["active"]:
            print(f"\033[33m[MERGE] {vid}: {stringify_truncated(new_state)}\033[0m")

    for ch in p["vertex_channels"].values():
        ch["checkpoint"]()


def run_step(p):
    """
    Execute a single superstep. Returns (p, step_info) where step_info contains:
    - superstep: The superstep number just completed
    - messages_sent: Number of (vertex, message) pairs emitted
    - edges_scanned: Number of edge triplets send_msg ran on
    - active_vertices: Vertices that received at least one message

    Returns (p, None) once no vertex receives a message (quiescence).
    """
    if p["halted"]:
        return p, None

    if not p["initialized"]:
        _initialize(p)

    messages_sent, edges_scanned = _send_messages(p)
    _update(p)

    if not p["active"]:
        p["halted"] = True
        if p["debug"]:
            print(f"\033[36m[TERMINATE] No messages at superstep {p['superstep']}\033[0m")
        return p, None

    p["superstep"] += 1

    if p["debug"]:
        print(f"\033[35m[PLAN] Superstep {p['superstep']}: active={stringify_truncated(sorted(map(str, p['active'])))}\033[0m")

    _merge(p)

    step_info = {
        "superstep": p["superstep"],
        "messages_sent": messages_sent,
        "edges_scanned": edges_scanned,
        "active_vertices": set(p["active"])
    }
    return p, step_info


def run(p, max_supersteps=1000):
    """
    Run the Pregel computation until quiescence.

    Args:
        p: Pregel executor state
        max_supersteps: Maximum number of supersteps before forced termination

    Returns:
        Graph whose vertex attributes are the final vertex states
    """
    if max_supersteps < 0:
        raise ValueError(f"\033[31mmax_supersteps must be >= 0, got {max_supersteps}\033[0m")

    if p["debug"]:
        print("\033[36m\n[START] Beginning BSP execution\033[0m")

    if not p["initialized"]:
        _initialize(p)

    while p["superstep"] < max_supersteps:
        p, step_info = run_step(p)
        if step_info is None:
            break

    if p["debug"]:
        print(f"\033[36m[COMPLETE] Finished after {p['superstep']} supersteps, {p['messages_sent']} messages\033[0m")

    return _current_graph(p)


def reset(p):
    """
    Reset the executor to its pre-run state. Returns the reset executor.
    """
    p["superstep"] = 0
    p["initialized"] = False
    p["halted"] = False
    p["active"] = set()
    p["messages_sent"] = 0

    for ch in p["vertex_channels"].values():
        ch["clear"]()
    for ch in p["inbox_channels"].values():
        ch["clear"]()

    if p["debug"]:
        print("\033[36m[RESET] Pregel state cleared\033[0m")

    return p


# =============================================================================
# CHECKPOINTING
# =============================================================================

def get_checkpoint(p):
    """Get a snapshot of the current state."""
    return {
        "superstep": p["superstep"],
        "initialized": p["initialized"],
        "halted": p["halted"],
        "active": set(p["active"]),
        "messages_sent": p["messages_sent"],
        "vertex_states": {vid: ch["get_state"]() for vid, ch in p["vertex_channels"].items()},
        "inbox_states": {vid: ch["get_state"]() for vid, ch in p["inbox_channels"].items()}
    }


def restore_checkpoint(p, checkpoint):
    """Restore state from a snapshot. Returns the restored executor."""
    p["superstep"] = checkpoint["superstep"]
    p["initialized"] = checkpoint["initialized"]
    p["halted"] = checkpoint["halted"]
    p["active"] = set(checkpoint["active"])
    p["messages_sent"] = checkpoint["messages_sent"]

    for vid, ch_state in checkpoint["vertex_states"].items():
        if vid in p["vertex_channels"]:
            p["vertex_channels"][vid]["set_state"](ch_state)
    for vid, ch_state in checkpoint["inbox_states"].items():
        if vid in p["inbox_channels"]:
            p["inbox_channels"][vid]["set_state"](ch_state)

    if p["debug"]:
        print(f"\033[36m[RESTORE] Restored checkpoint at superstep {p['superstep']}\033[0m")

    return p


# =============================================================================
# STATE ACCESSORS (for composability)
# =============================================================================

def get_graph(p):
    """Get the graph with current vertex states."""
    return _current_graph(p)

def get_superstep(p):
    """Get current superstep number."""
    return p["superstep"]

def get_active(p):
    """Get the vertices that received messages in the last superstep."""
    return set(p["active"])

def is_halted(p):
    return p["halted"]


# =============================================================================
# OOP WRAPPER CLASS
# =============================================================================

class Pregel:
    """
    Object-oriented wrapper around the functional API:
        bsp = Pregel(g, initial_message, vprog, send_msg, merge_msg, debug=False)
        final_graph = bsp.run()
    """

    def __init__(self, g, initial_message, vprog, send_msg, merge_msg, empty_message=None,
                 active_direction="either", debug=True, parallel=False, max_workers=None):
        self._p = pregel(g, initial_message, vprog, send_msg, merge_msg,
                         empty_message=empty_message, active_direction=active_direction,
                         debug=debug, parallel=parallel, max_workers=max_workers)

    def run(self, max_supersteps=1000):
        return run(self._p, max_supersteps)

    def run_step(self):
        self._p, step_info = run_step(self._p)
        return step_info

    def reset(self):
        self._p = reset(self._p)
        return self

    def get_checkpoint(self):
        return get_checkpoint(self._p)

    def restore_checkpoint(self, checkpoint):
        self._p = restore_checkpoint(self._p, checkpoint)
        return self

    @property
    def graph(self):
        return get_graph(self._p)

    @property
    def superstep(self):
        return get_superstep(self._p)

    @property
    def active(self):
        return get_active(self._p)

    @property
    def halted(self):
        return is_halted(self._p)

    @property
    def messages_sent(self):
        return self._p["messages_sent"]

    @property
    def debug(self):
        return self._p["debug"]

    @property
    def parallel(self):
        return self._p["parallel"]

    @property
    def max_workers(self):
        return self._p["max_workers"]
