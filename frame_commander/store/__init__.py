"""Reference implementation of the external project store."""

from frame_commander.store.local import LocalStore, StoreError
from frame_commander.store.service import StoreService

__all__ = ["LocalStore", "StoreError", "StoreService"]
