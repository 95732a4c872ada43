"""
Core utilities shared across the Users API.

This package hosts configuration helpers (env vars, storage paths) and the
logging setup. Routers and services depend on these primitives instead of
reading os.environ directly.
"""
