"""
Infrastructure Layer
=====================

Low-level technical concerns shared by the modules:
- Database connection management
- Custom column types
"""
