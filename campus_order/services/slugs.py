"""
Delivery location slug generation

Slugs are derived from the condo name. Uniqueness is enforced by the
database; on a conflict the caller retries with the next numeric suffix
(`base`, `base-1`, `base-2`, ...).
"""

from typing import Callable, Iterator, TypeVar
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session
import re
import structlog

from campus_order.core.errors import Internal, SlugGenerationError

logger = structlog.get_logger(__name__)

MAX_SLUG_ATTEMPTS = 10

T = TypeVar("T")


def slugify(value: str) -> str:
    """Lowercase ASCII slug: `&` becomes `and`, other symbols become dashes"""
    slug = (value or "").lower().strip()
    slug = slug.replace("&", " and ")
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


def slug_candidates(name: str, max_attempts: int = MAX_SLUG_ATTEMPTS) -> Iterator[str]:
    """Yield the base slug followed by numbered variants"""
    base = slugify(name)
    if not base:
        raise SlugGenerationError("Name must contain letters or numbers to build a slug")
    yield base
    for suffix in range(1, max_attempts):
        yield f"{base}-{suffix}"


def insert_with_unique_slug(
    session: Session,
    name: str,
    build: Callable[[str], T],
    max_attempts: int = MAX_SLUG_ATTEMPTS,
) -> T:
    """Insert the object built for each candidate slug until one commits.

    `build` must return fresh, unsaved objects on every call since a failed
    attempt rolls the whole transaction back.
    """
    for slug in slug_candidates(name, max_attempts):
        instance = build(slug)
        session.add(instance)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            logger.info(f"Slug {slug} already taken, trying next candidate")
            continue
        session.refresh(instance)
        return instance

    logger.error(f"Exhausted {max_attempts} slug attempts for {name!r}")
    raise Internal("Failed to generate a unique slug")
