"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- Deterministic code candidates
- In-memory set of taken referral codes
"""

import pytest


@pytest.fixture
def taken_codes():
    """Codes that the fake store reports as already used."""
    return set()


@pytest.fixture
def is_taken(taken_codes):
    """
    Async uniqueness check backed by taken_codes.

    Returns:
        Async predicate compatible with CodeGenerator
    """
    async def check(code: str) -> bool:
        return code in taken_codes
    return check


@pytest.fixture
def sequential_candidates():
    """
    Candidate factory yielding PREFIX0001, PREFIX0002, ...

    Returns:
        Callable building a candidate from a prefix
    """
    counter = {"n": 0}

    def factory(prefix: str) -> str:
        counter["n"] += 1
        return f"{prefix}{counter['n']:04d}"
    return factory
