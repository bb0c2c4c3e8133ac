"""
JogGPS Coaching - real-time AI coaching messages for runners.

This package contains the complete backend:
- core: Framework-agnostic coaching, cache-key and freshness logic
- infrastructure: External service integrations
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "1.0.0"
