"""ORM model for directory entries (website links)."""

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from smartlink.models.base import Base

SITE_URL_MAX_LEN = 500
TITLE_MAX_LEN = 200
COVER_IMAGE_MAX_LEN = 500
CATEGORY_MAX_LEN = 50


class Site(Base):
    """
    One curated website link.

    cover_image is a hosted image URL or an empty string; never raw image data.
    """

    __tablename__ = "sites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    site_url = Column(String(SITE_URL_MAX_LEN), nullable=False)
    title = Column(String(TITLE_MAX_LEN), nullable=False)
    cover_image = Column(String(COVER_IMAGE_MAX_LEN), nullable=False, default="")
    description = Column(Text, nullable=False)
    category = Column(String(CATEGORY_MAX_LEN), nullable=False, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
