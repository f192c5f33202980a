"""Routing: path templates, the route trie and handler binding.

Routes are registered during setup, bound to their handler's signature
immediately, and compiled into an immutable lookup structure when the
app freezes.
"""

from perch.routing.route import ANY_METHOD, Route, RouteMatch
from perch.routing.router import Router, capture_names, parse_path
from perch.routing.signature import HandlerDescriptor, PathParam, describe_handler

__all__ = [
    "ANY_METHOD",
    "HandlerDescriptor",
    "PathParam",
    "Route",
    "RouteMatch",
    "Router",
    "capture_names",
    "describe_handler",
    "parse_path",
]
