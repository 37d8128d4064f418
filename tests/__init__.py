"""Test suite for the flintmc package.

This package contains unit and integration tests validating
specification parsing and validation, test placement and scheduling,
assertion polling and the command-line interface.
"""
