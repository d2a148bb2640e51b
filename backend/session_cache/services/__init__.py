"""Services — request binding, session registry, flush/GC policies and shutdown.

Invariants:
    - Services depend on core and on the PersistentStore protocol, never on SQLAlchemy
"""
