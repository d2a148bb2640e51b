"""Infrastructure Layer — database access, SQL session store, scheduling and logging.

Invariants:
    - Infrastructure never imports from services or api
    - All SQLAlchemy failures mapped to PersistenceError before leaving this layer
"""
