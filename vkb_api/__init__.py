"""
VKB API - FastAPI REST API over the search and relationship engine.

This package contains:
- FastAPI application (main.py)
- Endpoints for hybrid/vector search, related chunks, and graph builds
"""
