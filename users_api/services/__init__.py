"""
High-level use cases for the Users API.

Services own the in-memory collection and orchestrate the persistence adapter
to implement the business rules (id assignment, validation, durability).

Routers (FastAPI endpoints) call these services instead of manipulating the
collection or the JSON file directly.
"""
