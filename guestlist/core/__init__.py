"""Core Application Layer: orchestrates the provisioning use cases.

Connects the domain layer with the infrastructure layer through interfaces.
"""
