"""
Record Store - Main interface for operating on a slot file
Coordinates the free list and active list over one open FileManager.
"""

from dataclasses import dataclass, asdict
from typing import Iterator, List, Optional, Tuple
from loguru import logger
from .storage.file_manager import FileManager
from .storage.free_list import FreeList
from .storage.active_list import ActiveList
from .storage.slot import Header, Record, Slot
from .constants import NIL
from .exceptions import (DuplicateKeyError, StoreFullError, KeyNotFoundError,
                         StoreIOError, CorruptStoreError)


@dataclass
class SearchResult:
    """A located record and the slot holding it"""
    index: int
    record: Record


@dataclass
class SlotView:
    """One row of a diagnostic dump"""
    index: int
    active: bool
    key: int
    name: str
    next: int
    prev: int

    @classmethod
    def from_slot(cls, index: int, slot: Slot) -> 'SlotView':
        return cls(index=index, active=not slot.is_free, key=slot.record.key,
                   name=slot.record.name, next=slot.next, prev=slot.prev)

    def to_dict(self) -> dict:
        return asdict(self)


class RecordStore:
    """Key-indexed record store over a fixed-capacity slot file"""

    def __init__(self, file_manager: FileManager):
        """
        Args:
            file_manager: An open FileManager; the store uses it exclusively
        """
        self.file_manager = file_manager
        self.free_list = FreeList(file_manager)
        self.active_list = ActiveList(file_manager)

    @classmethod
    def open(cls, store_path: str, capacity: Optional[int] = None,
             sync: bool = False) -> 'RecordStore':
        """
        Open a store, creating it when missing

        Args:
            store_path: Path to the slot file
            capacity: Capacity for a new file; required if the file is missing
            sync: fsync after every write

        Raises:
            StoreIOError: If the file is missing and no capacity was given,
                          or it cannot be opened/created
        """
        fm = FileManager(store_path, sync=sync)
        if fm.exists():
            fm.open_store()
        elif capacity is None:
            raise StoreIOError(f"Store {store_path} does not exist")
        else:
            fm.create_store(capacity)
        return cls(fm)

    def close(self) -> None:
        self.file_manager.close()

    def __enter__(self) -> 'RecordStore':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def header(self) -> Header:
        return self.file_manager.read_header()

    @property
    def capacity(self) -> int:
        return self.file_manager.capacity

    # --------------------------------------------------------------------
    # Lookup
    # --------------------------------------------------------------------

    def _find(self, header: Header, key: int) -> Optional[Tuple[int, Slot]]:
        for index, slot in self.active_list.walk(header):
            if slot.record.key == key:
                return index, slot
        return None

    def search(self, key: int) -> Optional[SearchResult]:
        """
        Linear search of the active list

        Returns:
            SearchResult with a copy of the record, or None if key is absent
        """
        found = self._find(self.header, key)
        if found is None:
            return None
        index, slot = found
        return SearchResult(index, Record(slot.record.key, slot.record.name))

    def get(self, key: int) -> Record:
        """
        Raises:
            KeyNotFoundError: If key is not active
        """
        result = self.search(key)
        if result is None:
            raise KeyNotFoundError(key)
        return result.record

    def __contains__(self, key: int) -> bool:
        return self.search(key) is not None

    def __len__(self) -> int:
        return self.header.count

    def __iter__(self) -> Iterator[Record]:
        for _, slot in self.active_list.walk(self.header):
            yield slot.record

    def keys(self) -> List[int]:
        return [record.key for record in self]

    # --------------------------------------------------------------------
    # Mutation
    # --------------------------------------------------------------------

    def _prepare_insert(self, key: int, name: str) -> Tuple[Header, int, Slot]:
        record = Record(key, name)
        record.validate()

        if self.search(key) is not None:
            logger.info(f"Insert rejected: key {key} already exists")
            raise DuplicateKeyError(key)

        header = self.header
        try:
            index, slot = self.free_list.allocate(header)
        except StoreFullError:
            logger.info(f"Insert rejected: store full (capacity {header.capacity})")
            raise
        slot.record = record
        return header, index, slot

    def insert(self, key: int, name: str) -> int:
        """
        Append a record at the tail of the active list

        Returns:
            Slot index the record was written to

        Raises:
            DuplicateKeyError: If key is already active
            StoreFullError: If no slot is free
            InvalidRecordError: If key or name cannot be stored
        """
        header, index, slot = self._prepare_insert(key, name)

        self.active_list.append(header, index, slot)
        header.count += 1
        self.file_manager.write_header(header)

        logger.debug(f"Inserted key {key} at slot {index}")
        return index

    def insert_ordered(self, key: int, name: str) -> int:
        """
        Insert a record before the first active record with a greater key

        Returns:
            Slot index the record was written to

        Raises:
            DuplicateKeyError: If key is already active
            StoreFullError: If no slot is free
            InvalidRecordError: If key or name cannot be stored
        """
        header, index, slot = self._prepare_insert(key, name)

        left, right = NIL, NIL
        for current, current_slot in self.active_list.walk(header):
            if current_slot.record.key > key:
                right = current
                break
            left = current

        self.active_list.splice_between(header, index, slot, left, right)
        header.count += 1
        self.file_manager.write_header(header)

        logger.debug(f"Inserted key {key} at slot {index} between {left} and {right}")
        return index

    def delete(self, key: int) -> bool:
        """
        Remove the record with the given key

        Returns:
            True if a record was removed, False if key is absent (no mutation)
        """
        header = self.header
        found = self._find(header, key)
        if found is None:
            return False
        index, slot = found

        self.active_list.unsplice(header, index, slot)
        self.free_list.release(header, index, slot)
        header.count -= 1
        if header.count == 0:
            header.first_active = NIL
            header.last_active = NIL
        self.file_manager.write_header(header)

        logger.debug(f"Deleted key {key} from slot {index}")
        return True

    # --------------------------------------------------------------------
    # Diagnostics
    # --------------------------------------------------------------------

    def dump_all(self) -> List[SlotView]:
        """Every slot in physical order"""
        return [SlotView.from_slot(i, self.file_manager.read_slot(i))
                for i in range(1, self.capacity + 1)]

    def dump_active(self) -> List[SlotView]:
        """Slots of the active list in traversal order"""
        return [SlotView.from_slot(i, slot)
                for i, slot in self.active_list.walk(self.header)]

    def dump_free(self) -> List[SlotView]:
        """Slots of the free list from its head"""
        return [SlotView.from_slot(i, slot)
                for i, slot in self.free_list.walk(self.header)]

    def verify(self) -> List[str]:
        """
        Check list linkage, partition, count and key invariants

        Returns:
            Descriptions of every problem found; empty if the store is consistent
        """
        problems: List[str] = []
        header = self.header

        active: List[int] = []
        seen_keys = set()
        try:
            expected_prev = NIL
            for index, slot in self.active_list.walk(header):
                if slot.prev != expected_prev:
                    problems.append(f"Active slot {index} has prev={slot.prev}, "
                                    f"expected {expected_prev}")
                if slot.is_free:
                    problems.append(f"Active slot {index} carries the free key")
                elif slot.record.key in seen_keys:
                    problems.append(f"Duplicate active key {slot.record.key} at slot {index}")
                seen_keys.add(slot.record.key)
                active.append(index)
                expected_prev = index
        except CorruptStoreError as e:
            problems.append(str(e))

        tail = active[-1] if active else NIL
        if tail != header.last_active:
            problems.append(f"Header last_active={header.last_active}, "
                            f"but the active list ends at {tail}")
        if len(active) != header.count:
            problems.append(f"Header count={header.count}, "
                            f"but {len(active)} slots are active")

        free: List[int] = []
        try:
            for index, slot in self.free_list.walk(header):
                if not slot.is_free:
                    problems.append(f"Free slot {index} holds key {slot.record.key}")
                if slot.prev != NIL:
                    problems.append(f"Free slot {index} has prev={slot.prev}")
                free.append(index)
        except CorruptStoreError as e:
            problems.append(str(e))

        both = set(active) & set(free)
        if both:
            problems.append(f"Slots on both lists: {sorted(both)}")
        missing = set(range(1, header.capacity + 1)) - set(active) - set(free)
        if missing:
            problems.append(f"Slots on neither list: {sorted(missing)}")

        for problem in problems:
            logger.warning(f"Integrity problem in {self.file_manager.store_path}: {problem}")
        return problems
