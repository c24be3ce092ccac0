"""
File Manager Module - Handles slot file I/O
Responsible for disk persistence, store creation, and bounds-checked slot access.
"""

import os
from pathlib import Path
from typing import BinaryIO, Optional
from loguru import logger
from .slot import Header, Slot
from ..constants import SLOT_SIZE, HEADER_SLOT_INDEX, NIL
from ..exceptions import StoreIOError, CorruptStoreError, SlotIndexError


class FileManager:
    """Owns the single open handle of a slot file"""

    def __init__(self, store_path: str, sync: bool = False):
        """
        Initialize file manager for a store

        Args:
            store_path: Path to the slot file
            sync: fsync after every write (narrows, but does not close,
                  the window between the slot write and the header write)
        """
        self.store_path = Path(store_path)
        self.slot_size = SLOT_SIZE
        self.sync = sync
        self.capacity = 0
        self._file: Optional[BinaryIO] = None

    def exists(self) -> bool:
        return self.store_path.exists()

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def create_store(self, capacity: int) -> Header:
        """
        Create and initialize a new slot file, leaving it open

        Every slot starts free, chained 1 -> 2 -> ... -> capacity -> NIL.

        Args:
            capacity: Number of usable slots

        Returns:
            The initial header

        Raises:
            FileExistsError: If the file already exists
            ValueError: If capacity is not positive
            StoreIOError: If the file cannot be created
        """
        if capacity < 1:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        if self.store_path.exists():
            raise FileExistsError(f"Store {self.store_path} already exists")

        try:
            self.store_path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.store_path, 'w+b')
        except OSError as e:
            raise StoreIOError(f"Cannot create store {self.store_path}: {e}") from e

        header = Header.initial(capacity)
        self.capacity = capacity
        self._file.write(header.serialize())

        for i in range(1, capacity + 1):
            free_slot = Slot(next=i + 1 if i < capacity else NIL, prev=NIL)
            self._file.write(free_slot.serialize())
        self._flush()

        logger.info(f"Created store {self.store_path} with capacity {capacity}")
        return header

    def open_store(self) -> Header:
        """
        Open an existing slot file

        Returns:
            The stored header

        Raises:
            StoreIOError: If the file cannot be opened
            CorruptStoreError: If the header or file size is inconsistent
        """
        try:
            self._file = open(self.store_path, 'r+b')
        except OSError as e:
            raise StoreIOError(f"Cannot open store {self.store_path}: {e}") from e

        try:
            header = Header.deserialize(self._read_unit(HEADER_SLOT_INDEX))
            expected_size = (header.capacity + 1) * self.slot_size
            file_size = os.fstat(self._file.fileno()).st_size
            if file_size < expected_size:
                raise CorruptStoreError(
                    f"Store {self.store_path} is {file_size} bytes, "
                    f"expected at least {expected_size} for capacity {header.capacity}")
        except CorruptStoreError:
            self.close()
            raise

        self.capacity = header.capacity
        logger.info(f"Opened store {self.store_path}: {header.count}/{header.capacity} records")
        return header

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> 'FileManager':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --------------------------------------------------------------------
    # Unit Access
    # --------------------------------------------------------------------

    def slot_offset(self, index: int) -> int:
        """
        Byte offset of a data slot

        Raises:
            SlotIndexError: If index is outside [1, capacity]
        """
        if not 1 <= index <= self.capacity:
            raise SlotIndexError(f"Slot index {index} outside [1, {self.capacity}]")
        return index * self.slot_size

    def read_header(self) -> Header:
        return Header.deserialize(self._read_unit(HEADER_SLOT_INDEX))

    def write_header(self, header: Header) -> None:
        if header.capacity != self.capacity:
            raise CorruptStoreError(
                f"Header capacity {header.capacity} differs from store capacity {self.capacity}")
        self._write_unit(HEADER_SLOT_INDEX, header.serialize())

    def read_slot(self, index: int) -> Slot:
        """
        Read one data slot

        Raises:
            SlotIndexError: If index is out of range
            CorruptStoreError: If a stored link is out of range
        """
        offset = self.slot_offset(index)
        slot = Slot.deserialize(self._read_unit(offset // self.slot_size))
        for field_name in ('next', 'prev'):
            link = getattr(slot, field_name)
            if link != NIL and not 1 <= link <= self.capacity:
                raise CorruptStoreError(
                    f"Slot {index} has {field_name}={link} outside [1, {self.capacity}]")
        return slot

    def write_slot(self, index: int, slot: Slot) -> None:
        offset = self.slot_offset(index)
        self._write_unit(offset // self.slot_size, slot.serialize())
        logger.debug(f"Wrote slot {index}: key={slot.record.key} "
                     f"next={slot.next} prev={slot.prev}")

    def _handle(self) -> BinaryIO:
        if self._file is None:
            raise StoreIOError(f"Store {self.store_path} is not open")
        return self._file

    def _read_unit(self, unit: int) -> bytes:
        f = self._handle()
        f.seek(unit * self.slot_size)
        data = f.read(self.slot_size)
        if len(data) < self.slot_size:
            raise CorruptStoreError(
                f"Short read at unit {unit}: {len(data)} of {self.slot_size} bytes")
        return data

    def _write_unit(self, unit: int, data: bytes) -> None:
        f = self._handle()
        f.seek(unit * self.slot_size)
        f.write(data)
        self._flush()

    def _flush(self) -> None:
        f = self._handle()
        f.flush()
        if self.sync:
            os.fsync(f.fileno())

    def get_store_info(self) -> dict:
        """Get basic store information"""
        header = self.read_header()
        return {
            "path": str(self.store_path),
            "file_size": self.store_path.stat().st_size,
            "slot_size": self.slot_size,
            "capacity": header.capacity,
            "count": header.count,
            "first_active": header.first_active,
            "last_active": header.last_active,
            "free_head": header.free_head,
        }
