"""MSM Session Cache — server-side HTTP session cache backed by a SQL store.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
