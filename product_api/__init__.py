# ==============================================================================
# PRODUCT API PACKAGE INITIALIZATION
# ==============================================================================
# Product catalog backend with FastAPI
# Storage: relational (SQLite, PostgreSQL) or single-table key-value
# ==============================================================================

"""
Product Catalog API
===================

A FastAPI backend for user accounts, a product catalog and signed
object store uploads, running on either of two storage backends chosen
at startup.

Features:
---------
- Relational storage through SQLAlchemy (SQLite, PostgreSQL)
- Single-table key-value storage with emulated secondary indexes
- Factory Pattern for backend selection
- JWT-based authentication
- Pre-signed S3 uploads
- Fixed window rate limiting and request logging

Usage:
------
    from product_api.main import app

    # Run with uvicorn
    uvicorn product_api.main:app --reload
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
