"""
Free List Module - LIFO stack of unused slot indices
The stack is rooted at Header.free_head and chained through Slot.next.
"""

from typing import Iterator, Tuple
from loguru import logger
from .file_manager import FileManager
from .slot import Header, Slot, Record
from ..constants import NIL
from ..exceptions import StoreFullError, CorruptStoreError


class FreeList:
    """Allocator over the free slots of a store"""

    def __init__(self, file_manager: FileManager):
        self.file_manager = file_manager

    def allocate(self, header: Header) -> Tuple[int, Slot]:
        """
        Pop the head of the free list

        The header is updated in memory only; the caller persists it after
        the popped slot has been linked and written.

        Returns:
            (index, slot) of the popped slot

        Raises:
            StoreFullError: If no slot is free
        """
        if header.free_head == NIL:
            raise StoreFullError(header.capacity)

        index = header.free_head
        slot = self.file_manager.read_slot(index)
        if not slot.is_free:
            raise CorruptStoreError(
                f"Free list head {index} holds active key {slot.record.key}")

        header.free_head = slot.next
        logger.debug(f"Allocated slot {index}, free head now {header.free_head}")
        return index, slot

    def release(self, header: Header, index: int, slot: Slot) -> None:
        """
        Push a slot onto the free list head and write it

        Args:
            header: Header to update in memory
            index: Slot index being released
            slot: Current slot contents (overwritten)
        """
        slot.next = header.free_head
        slot.prev = NIL
        slot.record = Record.free()
        self.file_manager.write_slot(index, slot)

        header.free_head = index
        logger.debug(f"Released slot {index}, next free {slot.next}")

    def walk(self, header: Header) -> Iterator[Tuple[int, Slot]]:
        """
        Traverse the free list from its head

        Raises:
            CorruptStoreError: If the chain is longer than capacity (a cycle)
        """
        index = header.free_head
        steps = 0
        while index != NIL:
            steps += 1
            if steps > header.capacity:
                raise CorruptStoreError(
                    f"Free list exceeds capacity {header.capacity}; cycle detected")
            slot = self.file_manager.read_slot(index)
            yield index, slot
            index = slot.next

    def indices(self, header: Header) -> list:
        return [index for index, _ in self.walk(header)]
