"""Shared metadata for all VetFlow tables."""

from sqlalchemy import MetaData

# Single metadata so foreign keys resolve across table modules
metadata = MetaData()
