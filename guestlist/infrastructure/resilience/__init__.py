"""API Resilience Implementations.

Retries with exponential backoff and the client-side rate ledger.
Bounded Context: API Resilience
"""
