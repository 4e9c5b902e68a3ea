"""SQLAlchemy ORM models."""

from smartlink.models.base import Base
from smartlink.models.site import Site
from smartlink.models.user import User

__all__ = ["Base", "Site", "User"]
