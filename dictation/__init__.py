"""
Friends Dictation - English practice with short TV-show clips.

This package contains the complete backend:
- core: Framework-agnostic business logic (auth, clips, uploads)
- infrastructure: External service integrations (database, object storage)
- api: FastAPI routes and dependencies
- client: Python data layer for consumers of the clip API
- config: Application configuration
"""

__version__ = "0.1.0"
