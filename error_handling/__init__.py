"""Failure isolation helpers for calls to external services."""

from .circuit_breaker import CircuitBreaker, CircuitOpenError

__all__ = ['CircuitBreaker', 'CircuitOpenError']
