"""
Catalog HTTP API
FastAPI adapter over the catalog search service.
"""
