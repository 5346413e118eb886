"""Shared runtime helpers: errors, results, processes, logging."""
