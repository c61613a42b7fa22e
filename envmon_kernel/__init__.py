"""
Environmental Monitoring Kernel

Shared foundation for the measurement import system:
- Structured JSON logging with request-scoped context
- Typed exception hierarchy with user-facing messages
- Injectable clock
- SQLAlchemy models for sites, parameters, measurements and audit events
- Hash-chained audit trail
"""

__version__ = "0.1.0"
