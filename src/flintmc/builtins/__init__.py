"""Builtin extensions registered without entry points."""
