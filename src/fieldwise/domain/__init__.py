"""Domain layer — rule, error, and result types.

This layer depends only on stdlib and pydantic.
It must never import from engine, partial, services, commands, or config.
"""
