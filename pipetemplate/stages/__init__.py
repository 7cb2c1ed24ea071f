"""Conversion stages: ID synthesis, trigger/notification naming, stage
config extraction and dependency-graph building.

Each stage exposes a small, pure function API; none of them mutate their
input or perform I/O.
"""
