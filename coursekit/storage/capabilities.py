"""Capability grants stored per (user, context)."""
import logging

from ..core.interfaces import ICapabilityChecker
from .sqlite_store import SQLiteRecordStore


logger = logging.getLogger(__name__)


class SQLiteCapabilityChecker(ICapabilityChecker):
    """Answers capability checks from the ``capability_grants`` table."""

    def __init__(self, store: SQLiteRecordStore):
        self.store = store

    def grant(self, capability: str, contextid: int, userid: int) -> None:
        if self.has_capability(capability, contextid, userid):
            return
        self.store.insert_record('capability_grants', {
            'capability': capability,
            'contextid': contextid,
            'userid': userid,
        })

    def has_capability(self, capability: str, contextid: int, userid: int) -> bool:
        allowed = self.store.get_record(
            'capability_grants',
            capability=capability,
            contextid=contextid,
            userid=userid,
        ) is not None
        logger.debug(f"Capability {capability} for user {userid} in context {contextid}: {allowed}")
        return allowed
