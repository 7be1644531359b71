"""
Test Fixtures

Shared test data factories.
"""

from .factories import (
    ChannelFactory,
    DraftRowFactory,
    ProgramFactory,
)

__all__ = [
    "ChannelFactory",
    "DraftRowFactory",
    "ProgramFactory",
]
