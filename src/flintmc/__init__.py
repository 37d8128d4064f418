"""Declarative, tick-synchronized test runner for live game worlds.

The `flintmc` package loads declarative test specifications (timelines
of block placements and block assertions keyed to simulation ticks) and
runs them against a single shared world through a narrow command/query
channel.

Key features:
- JSON/YAML test specifications validated against strict schemas;
- several tests multiplexed into one world on a non-overlapping grid;
- a merged, deterministic tick schedule driven by explicit tick steps;
- assertions that poll the world to tolerate propagation lag;
- interactive step/continue breakpoints from a console or the game chat.
"""
