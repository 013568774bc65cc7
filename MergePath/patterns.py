"""
Path patterns and the records a match is built from.

A pattern is an ordered list of TripletPattern. While matching, every vertex
holds a set of PartialPathMatch values "standing at" it: the edges matched so
far (latest first) and the pattern steps still to satisfy.
"""

from collections import namedtuple


def accept_all(triplet):
    return True


class TripletPattern:
    """
    One step of a path pattern: an edge predicate plus the side of the edge
    the match must currently be standing at.

    triplet_filter receives an EdgeTriplet whose src_attr/dst_attr are the
    endpoints' VertexState. With match_dst_first=False the edge is walked
    forward (standing at the source), with True it is walked backward
    (standing at the destination).
    """

    __slots__ = ("triplet_filter", "match_dst_first")

    def __init__(self, triplet_filter=accept_all, match_dst_first=False):
        object.__setattr__(self, "triplet_filter", triplet_filter)
        object.__setattr__(self, "match_dst_first", match_dst_first)

    def __setattr__(self, name, value):
        raise AttributeError(f"TripletPattern is immutable, cannot set {name}")

    def matches(self, current_vertex, triplet):
        """Match an edge against this step while standing at current_vertex."""
        edge_matches = bool(self.triplet_filter(triplet))
        if self.match_dst_first:
            direction_matches = current_vertex == triplet.dst_id
        else:
            direction_matches = current_vertex == triplet.src_id
        return edge_matches and direction_matches

    def __repr__(self):
        name = getattr(self.triplet_filter, "__name__", repr(self.triplet_filter))
        return f"TripletPattern({name}, match_dst_first={self.match_dst_first})"


class TripletMatch(namedtuple("TripletMatch", ["src_id", "dst_id", "attr"])):
    """A single matched edge."""

    __slots__ = ()

    def __str__(self):
        return f"{self.src_id} --[{self.attr}]--> {self.dst_id}"


class PathMatch(namedtuple("PathMatch", ["path"])):
    """A successful match: the matched edges in traversal order."""

    __slots__ = ()

    @property
    def src_id(self):
        return self.path[0].src_id if self.path else None

    def __str__(self):
        return ", ".join(str(m) for m in self.path)


# What a vertex carries while matching: its original attribute and the
# frozenset of PartialPathMatch standing at it.
VertexState = namedtuple("VertexState", ["attr", "partials"])


class PartialPathMatch:
    """
    A path prefix matched so far and the pattern suffix still to satisfy.

    matched is stored latest edge first so extending is a prepend. Two
    partial matches are equal when their matched histories are equal; the
    remaining steps follow from the history length.
    """

    __slots__ = ("matched", "remaining")

    def __init__(self, matched=(), remaining=()):
        object.__setattr__(self, "matched", tuple(matched))
        object.__setattr__(self, "remaining", tuple(remaining))

    def __setattr__(self, name, value):
        raise AttributeError(f"PartialPathMatch is immutable, cannot set {name}")

    def try_match(self, current_vertex, triplet):
        """
        Attempts to match the next pattern step against triplet while standing
        at current_vertex. Returns the extended partial match, or None.
        """
        if not self.remaining:
            return None
        pattern = self.remaining[0]
        if not pattern.matches(current_vertex, triplet):
            return None
        new_match = TripletMatch(triplet.src_id, triplet.dst_id, triplet.attr)
        return PartialPathMatch((new_match,) + self.matched, self.remaining[1:])

    @property
    def is_complete(self):
        return not self.remaining

    def to_complete_match(self):
        assert self.is_complete, "to_complete_match() called on an incomplete partial match"
        return PathMatch(tuple(reversed(self.matched)))

    def get_complete_match_src(self, holder=None):
        """
        Start vertex of a complete match: the source of the first edge
        traversed. A zero-length match starts where it is held.
        """
        assert self.is_complete, "get_complete_match_src() called on an incomplete partial match"
        if not self.matched:
            assert holder is not None, "zero-length match needs the holding vertex"
            return holder
        return self.matched[-1].src_id

    def __eq__(self, other):
        if not isinstance(other, PartialPathMatch):
            return NotImplemented
        return self.matched == other.matched

    def __hash__(self):
        return hash(self.matched)

    def __repr__(self):
        path = ", ".join(str(m) for m in reversed(self.matched))
        return f"PartialPathMatch([{path}], remaining={len(self.remaining)})"
