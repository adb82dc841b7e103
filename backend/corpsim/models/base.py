"""
base.py — Shared Declarative Base

Every ORM model in corpsim.models registers on this one Base so that
`init_schema()` can create the whole schema from a single metadata object.
"""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
