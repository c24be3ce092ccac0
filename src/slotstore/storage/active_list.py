"""
Active List Module - Doubly-linked list of slots holding live records
Head and tail are tracked by Header.first_active / Header.last_active.
"""

from typing import Iterator, Tuple
from .file_manager import FileManager
from .slot import Header, Slot
from ..constants import NIL
from ..exceptions import CorruptStoreError


class ActiveList:
    """Splice primitives over the active list

    Every primitive writes the touched neighbours and then the new or removed
    slot itself. The header is only updated in memory; persisting it is the
    caller's job, so each mutation ends with exactly one header write.
    """

    def __init__(self, file_manager: FileManager):
        self.file_manager = file_manager

    def append(self, header: Header, index: int, slot: Slot) -> None:
        """Link slot as the new tail (and head, if the list is empty)"""
        slot.next = NIL
        slot.prev = header.last_active

        if header.last_active != NIL:
            self._set_next(header.last_active, index)
        self.file_manager.write_slot(index, slot)

        if header.first_active == NIL:
            header.first_active = index
        header.last_active = index

    def splice_first(self, header: Header, index: int, slot: Slot) -> None:
        """Link slot before the current head"""
        if header.first_active == NIL:
            self.append(header, index, slot)
            return

        slot.prev = NIL
        slot.next = header.first_active
        self._set_prev(header.first_active, index)
        self.file_manager.write_slot(index, slot)
        header.first_active = index

    def splice_last(self, header: Header, index: int, slot: Slot) -> None:
        """Link slot after the current tail"""
        self.append(header, index, slot)

    def splice_between(self, header: Header, index: int, slot: Slot,
                       left: int, right: int) -> None:
        """
        Link slot between two adjacent active slots

        Args:
            left: Slot whose next is currently right
            right: Slot whose prev is currently left
        """
        if left == NIL:
            self.splice_first(header, index, slot)
            return
        if right == NIL:
            self.splice_last(header, index, slot)
            return

        slot.prev = left
        slot.next = right
        self._set_next(left, index)
        self._set_prev(right, index)
        self.file_manager.write_slot(index, slot)

    def unsplice(self, header: Header, index: int, slot: Slot) -> None:
        """
        Detach slot from wherever it sits

        The slot itself is not written; the caller releases it.
        """
        left, right = slot.prev, slot.next

        if left != NIL:
            self._set_next(left, right)
        else:
            header.first_active = right

        if right != NIL:
            self._set_prev(right, left)
        else:
            header.last_active = left

    def walk(self, header: Header) -> Iterator[Tuple[int, Slot]]:
        """
        Traverse from head to tail via next links

        Raises:
            CorruptStoreError: If the chain is longer than capacity (a cycle)
        """
        index = header.first_active
        steps = 0
        while index != NIL:
            steps += 1
            if steps > header.capacity:
                raise CorruptStoreError(
                    f"Active list exceeds capacity {header.capacity}; cycle detected")
            slot = self.file_manager.read_slot(index)
            yield index, slot
            index = slot.next

    def _set_next(self, index: int, value: int) -> None:
        neighbour = self.file_manager.read_slot(index)
        neighbour.next = value
        self.file_manager.write_slot(index, neighbour)

    def _set_prev(self, index: int, value: int) -> None:
        neighbour = self.file_manager.read_slot(index)
        neighbour.prev = value
        self.file_manager.write_slot(index, neighbour)
