"""Site repository: single-row CRUD over the sites table."""

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from smartlink.models import Site

# Columns callers may set; id and timestamps are managed by the database.
WRITABLE_FIELDS = frozenset({"site_url", "title", "cover_image", "description", "category"})


def _writable(fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - WRITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown site fields: {', '.join(sorted(unknown))}")
    return dict(fields)


def create_site(db: Session, fields: dict[str, Any]) -> Site:
    """Insert a site and return it with generated id and timestamps."""
    values = _writable(fields)
    values.setdefault("cover_image", "")
    site = Site(**values)
    db.add(site)
    db.commit()
    db.refresh(site)
    return site


def list_sites(db: Session) -> list[Site]:
    """All sites, newest first."""
    stmt = select(Site).order_by(Site.created_at.desc(), Site.id.desc())
    return list(db.scalars(stmt).all())


def get_site(db: Session, site_id: int) -> Site | None:
    return db.get(Site, site_id)


def update_site(db: Session, site_id: int, fields: dict[str, Any]) -> Site | None:
    """
    Apply a partial update. Returns None when the site does not exist.

    Concurrent updates of the same row are last-write-wins.
    """
    values = _writable(fields)
    site = db.get(Site, site_id)
    if site is None:
        return None
    for key, value in values.items():
        setattr(site, key, value)
    db.commit()
    db.refresh(site)
    return site


def delete_site(db: Session, site_id: int) -> bool:
    """Delete by id; returns whether a row was removed."""
    result = db.execute(delete(Site).where(Site.id == site_id))
    db.commit()
    return bool(result.rowcount)
