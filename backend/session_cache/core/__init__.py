"""Core — session state, codec, errors and store contract.

Invariants:
    - Core never imports from infrastructure, services or api
    - No IO here: the store is reached only through the PersistentStore protocol
"""
