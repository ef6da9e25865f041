'''
Error taxonomy for the postman solvers.
'''
from typing import Optional


class PostmanError(Exception):
    '''Base class for every error raised by mixed_postman.'''


class GraphError(PostmanError, ValueError):
    '''Raised when a graph snapshot is malformed.'''


class SolveError(PostmanError):
    '''Base class for failures of a solve call.'''


class NotConnected(SolveError):
    '''The end vertex cannot be reached from the start vertex.'''

    def __init__(self, start: int, end: int):
        super().__init__(f"vertex {end} is not reachable from vertex {start}")
        self.start = start
        self.end = end


class UnreachableVertex(SolveError):
    '''
    A vertex of the relevant sub-graph cannot take part in any walk
    from start to end.
    '''

    def __init__(self, vertex_id: int, reason: Optional[str] = None):
        message = f"vertex {vertex_id} cannot be part of a covering walk"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.vertex_id = vertex_id
        self.reason = reason


class NoEulerianTrail(SolveError):
    '''The balanced edge multiset does not admit the expected trail.'''


class SolveExhausted(SolveError):
    '''A search ran out of budget without finding any covering walk.'''


class SolveCancelled(SolveError):
    '''A search was stopped before it produced a result.'''
