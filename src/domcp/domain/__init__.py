"""Domain layer: model, merge reducers, rules, diff, planner, conventions.

This layer depends only on stdlib, pydantic and networkx.
It must never import from services, infrastructure, commands, or config.
"""
