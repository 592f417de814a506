"""
Test support utilities for dbchain tests.

Helpers that are not fixtures but are shared across test modules.
"""
