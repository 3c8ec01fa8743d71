"""Declarative base shared by all DocFlow models."""

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


# JSONB on PostgreSQL, plain JSON on the SQLite test database
PortableJSONB = JSON().with_variant(JSONB(), "postgresql")
