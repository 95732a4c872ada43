"""
Persistence adapters.

These modules encapsulate how user records are stored/retrieved (today a JSON
file). Services depend on the adapter instead of touching the file directly.
"""
