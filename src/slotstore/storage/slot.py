"""
Slot Module - On-disk schemas for the header unit and data slots
Both schemas are encoded into units of the same fixed width (SLOT_SIZE).
"""

from dataclasses import dataclass, field
from ..constants import (HEADER_STRUCT, SLOT_STRUCT, SLOT_SIZE, NAME_SIZE, NIL,
                         FREE_KEY, KEY_MIN, KEY_MAX)
from ..exceptions import CorruptStoreError, InvalidRecordError, NameTooLongError


def encode_name(name: str) -> bytes:
    """
    Encode a name into its fixed-width buffer

    Args:
        name: Text to store

    Returns:
        Exactly NAME_SIZE bytes, zero padded

    Raises:
        NameTooLongError: If the UTF-8 encoding exceeds NAME_SIZE bytes
    """
    encoded = name.encode('utf-8', errors='surrogateescape')
    if len(encoded) > NAME_SIZE:
        raise NameTooLongError(
            f"Name exceeds {NAME_SIZE} bytes ({len(encoded)} bytes)")
    return encoded.ljust(NAME_SIZE, b'\x00')


def decode_name(raw: bytes) -> str:
    """Decode a name buffer; a full buffer carries no terminator"""
    end = raw.find(b'\x00')
    if end != -1:
        raw = raw[:end]
    return raw.decode('utf-8', errors='surrogateescape')


def _pad(packed: bytes) -> bytes:
    return packed.ljust(SLOT_SIZE, b'\x00')


@dataclass
class Header:
    """Store metadata kept in unit 0"""
    count: int = 0
    first_active: int = NIL
    last_active: int = NIL
    free_head: int = NIL
    capacity: int = 0

    @classmethod
    def initial(cls, capacity: int) -> 'Header':
        """Header of a freshly created store: every slot free"""
        return cls(count=0, first_active=NIL, last_active=NIL,
                   free_head=1 if capacity > 0 else NIL, capacity=capacity)

    @property
    def is_empty(self) -> bool:
        return self.first_active == NIL

    @property
    def is_full(self) -> bool:
        return self.free_head == NIL

    def serialize(self) -> bytes:
        return _pad(HEADER_STRUCT.pack(self.count, self.first_active,
                                       self.last_active, self.free_head,
                                       self.capacity))

    @classmethod
    def deserialize(cls, data: bytes) -> 'Header':
        """
        Decode header unit and sanity check its fields

        Raises:
            CorruptStoreError: If the unit is short or fields are out of range
        """
        if len(data) < HEADER_STRUCT.size:
            raise CorruptStoreError(
                f"Header truncated: {len(data)} of {HEADER_STRUCT.size} bytes")
        header = cls(*HEADER_STRUCT.unpack_from(data, 0))

        if header.capacity < 0:
            raise CorruptStoreError(f"Negative capacity {header.capacity}")
        if not 0 <= header.count <= header.capacity:
            raise CorruptStoreError(
                f"Record count {header.count} outside [0, {header.capacity}]")
        for name in ('first_active', 'last_active', 'free_head'):
            value = getattr(header, name)
            if value != NIL and not 1 <= value <= header.capacity:
                raise CorruptStoreError(f"Header {name}={value} out of range")
        return header


@dataclass
class Record:
    """Payload of a slot: integer key plus fixed-width name"""
    key: int
    name: str = ""

    @classmethod
    def free(cls) -> 'Record':
        return cls(key=FREE_KEY, name="")

    @property
    def is_free(self) -> bool:
        return self.key == FREE_KEY

    def validate(self) -> None:
        """
        Check that this record may be stored as an active record

        Raises:
            InvalidRecordError: If key is the free marker or outside int32
            NameTooLongError: If name does not fit the name buffer
        """
        if not isinstance(self.key, int) or isinstance(self.key, bool):
            raise InvalidRecordError(f"Key must be an integer, got {self.key!r}")
        if self.key == FREE_KEY:
            raise InvalidRecordError(f"Key {FREE_KEY} is reserved for free slots")
        if not KEY_MIN <= self.key <= KEY_MAX:
            raise InvalidRecordError(f"Key {self.key} outside 32-bit range")
        encode_name(self.name)


@dataclass
class Slot:
    """One data unit: list links plus a record"""
    next: int = NIL
    prev: int = NIL
    record: Record = field(default_factory=Record.free)

    @property
    def is_free(self) -> bool:
        return self.record.is_free

    def serialize(self) -> bytes:
        return _pad(SLOT_STRUCT.pack(self.next, self.prev, self.record.key,
                                     encode_name(self.record.name)))

    @classmethod
    def deserialize(cls, data: bytes) -> 'Slot':
        if len(data) < SLOT_STRUCT.size:
            raise CorruptStoreError(
                f"Slot truncated: {len(data)} of {SLOT_STRUCT.size} bytes")
        next_index, prev_index, key, raw_name = SLOT_STRUCT.unpack_from(data, 0)
        return cls(next_index, prev_index, Record(key, decode_name(raw_name)))
