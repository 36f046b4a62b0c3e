"""
Asset Kernel

The innermost layer of the asset lifecycle engine:
- Typed, coded exceptions for infrastructure failures
- Structured JSON logging with request-scoped context
- Pure domain value objects (workflow, errors, intents, clock)
- SQLAlchemy declarative base and engine/session management
"""

__version__ = "0.1.0"
