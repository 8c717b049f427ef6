"""
Finance Dashboard - Source Package

Backend for a personal finance dashboard: users sign up, log in and
manage a list of bank accounts persisted in a local key-value store.

DESIGN PRINCIPLES:
1. Every account is owned by exactly one user
2. Reads are always scoped to the session user
3. Rejected mutations never touch storage
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Dashboard Team"
