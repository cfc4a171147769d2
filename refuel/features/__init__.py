"""
Feature modules for Refuel.

Each feature is a self-contained module with:
- schemas.py - Pydantic schemas
- service modules - Business logic (parser, discovery, generator, ...)
- provider clients - External HTTP APIs (optional)
"""
