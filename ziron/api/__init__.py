"""
FastAPI application package.

Entry point: `ziron.api.main:app`.
"""
