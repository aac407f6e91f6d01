"""Domain Layer: value objects, errors, events and ports.

Holds no I/O; infrastructure adapters implement the interfaces defined here.
"""
