"""
================================================================================
Test Data Cleanup
================================================================================

Tracks entities created during a test and deletes them afterwards, so API
suites leave the environment as they found it.

Usage (through the ``cleanup_tracker`` fixture):

    def test_create(api, cleanup_tracker):
        client = api.client(GastosUnicosClient)
        response = client.create(payload)
        cleanup_tracker.track_from_response(response, EntityType.GASTO_UNICO)

Deletion strategies map an EntityType to a callable taking an id and
returning the DELETE response.

================================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, List, Mapping

import httpx
from loguru import logger

from .response_validator import FieldNotFound, get_value


# 404 means somebody already deleted it
SUCCESSFUL_DELETION_CODES = (200, 204, 404)


class EntityType(Enum):
    GASTO_UNICO = "gasto único"
    GASTO_RECURRENTE = "gasto recurrente"
    DEBITO_AUTOMATICO = "débito automático"
    USER = "user"

    @property
    def display_name(self) -> str:
        return self.value


DeleteFunction = Callable[[Any], httpx.Response]


def is_valid_id(entity_id: Any) -> bool:
    if entity_id is None:
        return False
    text = str(entity_id).strip()
    return bool(text) and text != "null"


class CleanupTracker:
    """Remembers created entity ids per type until ``cleanup`` runs."""

    def __init__(self) -> None:
        self._tracked: Dict[EntityType, List[Any]] = {t: [] for t in EntityType}

    def track(self, entity_type: EntityType, entity_id: Any) -> bool:
        """Track ``entity_id``; blank and ``"null"`` ids are ignored."""
        if not is_valid_id(entity_id):
            return False
        self._tracked[entity_type].append(entity_id)
        logger.debug(f"Tracking {entity_type.display_name} for cleanup: {entity_id}")
        return True

    def track_from_response(
        self,
        response: httpx.Response,
        entity_type: EntityType,
        id_path: str = "data.id",
    ) -> bool:
        """Track the id of a freshly created entity (201 responses only)."""
        if response.status_code != 201:
            return False
        try:
            entity_id = get_value(response.json(), id_path)
        except (FieldNotFound, ValueError):
            logger.warning(f"Created {entity_type.display_name} has no id at '{id_path}'")
            return False
        return self.track(entity_type, entity_id)

    def tracked(self, entity_type: EntityType) -> List[Any]:
        """Copy of the ids tracked for ``entity_type``."""
        return list(self._tracked[entity_type])

    def cleanup(self, strategies: Mapping[EntityType, DeleteFunction]) -> int:
        """
        Delete every tracked entity that has a strategy, then forget them all.

        Returns:
            Number of entities deleted (or already gone)
        """
        total = 0
        for entity_type, entity_ids in self._tracked.items():
            if not entity_ids:
                continue
            delete = strategies.get(entity_type)
            if delete is None:
                logger.warning(
                    f"No cleanup strategy for {entity_type.display_name}; "
                    f"leaving {len(entity_ids)} entities behind"
                )
                continue
            total += self._delete_all(entity_ids, delete, entity_type.display_name)

        if total:
            logger.info(f"Cleaned up {total} test entities")
        self.clear()
        return total

    def clear(self) -> None:
        for entity_ids in self._tracked.values():
            entity_ids.clear()

    def _delete_all(
        self,
        entity_ids: List[Any],
        delete: DeleteFunction,
        type_name: str,
    ) -> int:
        cleaned = 0
        for entity_id in entity_ids:
            try:
                response = delete(entity_id)
            except httpx.HTTPError as e:
                logger.warning(f"Failed to cleanup {type_name} {entity_id}: {e}")
                continue
            if response.status_code in SUCCESSFUL_DELETION_CODES:
                cleaned += 1
                logger.debug(f"Cleaned {type_name}: {entity_id}")
            else:
                logger.warning(
                    f"Failed to cleanup {type_name} {entity_id}: HTTP {response.status_code}"
                )
        return cleaned


__all__ = [
    "CleanupTracker",
    "EntityType",
    "SUCCESSFUL_DELETION_CODES",
    "is_valid_id",
]
