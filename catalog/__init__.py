"""
Catalog API package.

This package provides a FastAPI application exposing Products and
Categories through a generic repository layer, backed either by a
SQLAlchemy data context or by in-memory dictionaries.
"""
