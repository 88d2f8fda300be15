import logging
import threading
from typing import Callable, Dict, Optional, Sequence

from .config import PackConfig, TruckSpec
from .models import CargoItem, PackResult
from .packer import pack

logger = logging.getLogger(__name__)


class PackInProgressError(RuntimeError):
    """A run for the same pack id is already in flight."""


class _Slot:
    """Lock for one pack id plus the number of callers holding or waiting on it."""

    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class PackRunner:
    """Runs ``pack`` with at most one run in flight per pack id.

    Results are written back into a pack's stored state by the caller, so two
    overlapping runs on the same pack would race. Different pack ids run
    concurrently. A pack id's slot is dropped once no caller holds or waits on it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._slots: Dict[str, _Slot] = {}

    def _checkout(self, pack_id: str) -> _Slot:
        with self._guard:
            slot = self._slots.get(pack_id)
            if slot is None:
                slot = self._slots[pack_id] = _Slot()
            slot.users += 1
            return slot

    def _checkin(self, pack_id: str, slot: _Slot) -> None:
        with self._guard:
            slot.users -= 1
            if not slot.users and self._slots.get(pack_id) is slot:
                del self._slots[pack_id]

    def is_running(self, pack_id: str) -> bool:
        with self._guard:
            slot = self._slots.get(pack_id)
            return slot is not None and slot.lock.locked()

    def run(self, pack_id: str, items: Sequence[CargoItem], truck: TruckSpec,
            config: Optional[PackConfig] = None, should_cancel: Optional[Callable[[], bool]] = None,
            blocking: bool = True) -> PackResult:
        slot = self._checkout(pack_id)
        try:
            if not slot.lock.acquire(blocking=blocking):
                raise PackInProgressError(f"pack {pack_id!r} is already being packed")
            try:
                logger.debug("pack %s: run started", pack_id)
                return pack(items, truck, config, should_cancel)
            finally:
                slot.lock.release()
        finally:
            self._checkin(pack_id, slot)
