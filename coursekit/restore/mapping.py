"""
Id mapping for one restore run.

Every foreign key in a backup document is an id from the source site. As
records are inserted, the old id of each record is mapped to the id it got
in the target database, and children resolve their parents through it.

The mapping also tracks which record of each type is the current ancestor
of the node being processed, so a child can ask for "the new id of my
lesson" without carrying the old parent id itself.
"""
from typing import Dict, List, Mapping, Optional, Tuple
import logging

from ..core.exceptions import DuplicateMappingError, MissingMappingError


logger = logging.getLogger(__name__)

USER_ITEM_TYPE = "user"


class IdMapping:
    """Old id -> new id tables keyed by item type, scoped to one restore run."""

    def __init__(self, users: Optional[Mapping[int, int]] = None):
        """
        Args:
            users: Old user id -> new user id, as resolved by the host before
                   the activity is restored
        """
        self._tables: Dict[str, Dict[int, int]] = {}
        # (path, item type, old id) of the records enclosing the current node
        self._ancestors: List[Tuple[str, str, int]] = []

        for old_id, new_id in (users or {}).items():
            self.set_mapping(USER_ITEM_TYPE, int(old_id), int(new_id))

    # ------------------------------------------------------------------
    # Mapping tables
    # ------------------------------------------------------------------

    def set_mapping(self, item_type: str, old_id: int, new_id: int) -> None:
        """
        Record that ``old_id`` of ``item_type`` was restored as ``new_id``.

        Raises:
            DuplicateMappingError: If ``old_id`` is already mapped
        """
        table = self._tables.setdefault(item_type, {})
        if old_id in table:
            raise DuplicateMappingError(
                f"{item_type} {old_id} is already mapped to {table[old_id]}",
                item_type=item_type,
                old_id=old_id
            )
        table[old_id] = new_id
        logger.debug(f"Mapped {item_type} {old_id} -> {new_id}")

    def get_mapping(self, item_type: str, old_id: int, default: Optional[int] = None) -> Optional[int]:
        return self._tables.get(item_type, {}).get(old_id, default)

    def get_mapping_id(self, item_type: str, old_id: int) -> int:
        """
        New id for ``old_id``.

        Raises:
            MissingMappingError: If ``old_id`` was never mapped
        """
        new_id = self.get_mapping(item_type, old_id)
        if new_id is None:
            raise MissingMappingError(
                f"No mapping for {item_type} {old_id}",
                item_type=item_type,
                old_id=old_id
            )
        return new_id

    def mapped_ids(self, item_type: str) -> Dict[int, int]:
        return dict(self._tables.get(item_type, {}))

    # ------------------------------------------------------------------
    # Ancestors
    # ------------------------------------------------------------------

    def enter_node(self, path: str) -> None:
        """Forget ancestors that do not enclose the element at ``path``."""
        while self._ancestors and not path.startswith(self._ancestors[-1][0] + '/'):
            self._ancestors.pop()

    def push_parent(self, path: str, item_type: str, old_id: int) -> None:
        """Make the record just processed the ancestor of what follows it."""
        self._ancestors.append((path, item_type, old_id))

    def get_new_parent_id(self, item_type: str) -> int:
        """
        New id of the closest enclosing record of ``item_type``.

        Raises:
            MissingMappingError: No such ancestor, or it was never mapped
        """
        for _, ancestor_type, old_id in reversed(self._ancestors):
            if ancestor_type == item_type:
                return self.get_mapping_id(item_type, old_id)

        raise MissingMappingError(f"No enclosing {item_type} for the current node", item_type=item_type)
