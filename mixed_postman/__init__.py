'''
Mixed Chinese Postman solver: minimum-weight walks from a start vertex to
an end vertex that traverse every edge of a mixed graph at least once.
'''
from .exceptions import (
    GraphError,
    NoEulerianTrail,
    NotConnected,
    PostmanError,
    SolveCancelled,
    SolveError,
    SolveExhausted,
    UnreachableVertex,
)
from .graph import Direction, Edge, Graph, Path, Vertex, can_travel
from .solver import (
    lower_bound,
    reachable,
    shortest_path,
    solve,
    solve_cpp_bounded,
    solve_cpp_exact,
    solve_cpp_random,
)

__version__ = "0.1.0"

__all__ = [
    "Direction", "Edge", "Graph", "Path", "Vertex", "can_travel",
    "reachable", "shortest_path", "solve", "solve_cpp_exact", "solve_cpp_bounded",
    "solve_cpp_random", "lower_bound",
    "PostmanError", "GraphError", "SolveError", "NotConnected", "UnreachableVertex",
    "NoEulerianTrail", "SolveExhausted", "SolveCancelled",
]
