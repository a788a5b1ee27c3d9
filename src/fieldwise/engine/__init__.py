"""Traversal engine — rule registry, walker, processors, union resolution.

Depends on the domain layer and on pydantic for leaf coercion.
"""
