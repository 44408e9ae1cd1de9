# src/registry/id_resolver.py — v1
"""Resolve registry ids to working paths, enforcing the expected category.

Callers outside the selection pipeline (drafting, refinement) refer to images
only by id. An id that does not exist, or that belongs to another category, is
a caller error and is reported together with the ids that are valid.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from designscout.core.models import ImageCategory
from designscout.registry.image_registry import ImageRegistry

logger = logging.getLogger(__name__)


class InvalidIdentityError(LookupError):
    """Raised when ids are unknown or registered under another category."""

    def __init__(
        self,
        invalid_ids: list[int],
        category: ImageCategory,
        valid_ids: list[int],
    ) -> None:
        self.invalid_ids = invalid_ids
        self.category = category
        self.valid_ids = valid_ids
        noun = "id" if len(invalid_ids) == 1 else "ids"
        super().__init__(
            f"Invalid {category} {noun}: [{', '.join(map(str, invalid_ids))}]. "
            f"Valid {category} ids are: [{', '.join(map(str, valid_ids))}]"
        )


def valid_ids_for_category(registry: ImageRegistry, category: ImageCategory) -> list[int]:
    """All ids of ``category`` in ascending order."""
    return [img.id for img in registry.get_images_by_category(category)]


def _lookup(registry: ImageRegistry, image_id: int, category: ImageCategory) -> str | None:
    image = registry.get_image(image_id)
    if image is None:
        logger.debug("Id #%d not found in registry", image_id)
        return None
    if image.category != category:
        logger.debug("Id #%d is %s, expected %s", image_id, image.category, category)
        return None
    return image.path


def validate_ids(
    registry: ImageRegistry,
    image_ids: Iterable[int],
    category: ImageCategory,
) -> tuple[list[int], list[int]]:
    """Split ids into (valid, invalid) for ``category``."""
    valid: list[int] = []
    invalid: list[int] = []
    for image_id in image_ids:
        if _lookup(registry, image_id, category) is not None:
            valid.append(image_id)
        else:
            invalid.append(image_id)
    return valid, invalid


def resolve_id(registry: ImageRegistry, image_id: int, category: ImageCategory) -> str:
    """Working path of ``image_id``.

    Raises:
        InvalidIdentityError: If the id is unknown or of another category.
    """
    path = _lookup(registry, image_id, category)
    if path is None:
        raise InvalidIdentityError(
            [image_id], category, valid_ids_for_category(registry, category)
        )
    return path


def resolve_ids(
    registry: ImageRegistry,
    image_ids: Sequence[int],
    category: ImageCategory,
) -> list[str]:
    """Working paths of all ``image_ids``, in order.

    Raises:
        InvalidIdentityError: Listing every invalid id, if any.
    """
    valid, invalid = validate_ids(registry, image_ids, category)
    if invalid:
        raise InvalidIdentityError(
            invalid, category, valid_ids_for_category(registry, category)
        )
    return [resolve_id(registry, image_id, category) for image_id in valid]


def id_to_index(registry: ImageRegistry, image_id: int, paths: Sequence[str]) -> int | None:
    """0-based index of the image's working path in ``paths``."""
    image = registry.get_image(image_id)
    if image is None:
        return None
    try:
        return list(paths).index(image.path)
    except ValueError:
        return None
