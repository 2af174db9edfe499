"""URL slug generation with collision retry."""

import re
import secrets
import string
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from sqlalchemy.exc import IntegrityError

from core.config import settings
from core.exceptions import SlugGenerationError
from domain.services.access import is_unique_violation

logger = structlog.get_logger()

T = TypeVar("T")

_ALPHABET = string.digits + string.ascii_lowercase


def slugify(name: str, fallback: str = "item") -> str:
    """Lower-case ``name`` and collapse runs of non-word characters to ``-``."""
    slug = re.sub(r"[^\w-]+", "-", name.lower().strip(), flags=re.ASCII)
    slug = re.sub(r"-{2,}", "-", slug)
    slug = slug.strip("-_")
    return slug[:80] if slug else fallback


def random_suffix(length: int | None = None) -> str:
    """Random base-36 string."""
    size = length if length is not None else settings.slug_suffix_length
    return "".join(secrets.choice(_ALPHABET) for _ in range(size))


def generate_slug(name: str, fallback: str = "item") -> str:
    return f"{slugify(name, fallback)}-{random_suffix()}"


async def create_with_unique_slug(
    name: str,
    create: Callable[[str], Awaitable[T]],
    fallback: str = "item",
) -> T:
    """Run ``create(slug)`` until it stops hitting a unique violation.

    ``create`` must open and commit its own unit of work so that a collision
    rolls the whole unit back before the next attempt.

    Raises:
        SlugGenerationError: every attempt collided.
    """
    attempts = settings.slug_max_attempts
    for attempt in range(1, attempts + 1):
        slug = generate_slug(name, fallback)
        try:
            return await create(slug)
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            logger.info("slug_collision", slug=slug, attempt=attempt)

    logger.warning("slug_generation_failed", name=name, attempts=attempts)
    raise SlugGenerationError(name, attempts)
