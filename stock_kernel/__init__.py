"""
Stock Kernel - domain layer for stock card reconstruction.

Provides:
- Immutable movement, opening-state and stock-card value objects
- Typed exception hierarchy with machine-readable codes
- Structured JSON logging with request-scoped context
"""

__version__ = "0.1.0"
