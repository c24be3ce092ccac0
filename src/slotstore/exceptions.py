"""
SlotStore Exceptions - Error taxonomy for store operations
"""


class SlotStoreError(Exception):
    """Base class for store errors"""
    pass


class DuplicateKeyError(SlotStoreError):
    """Insert attempted with a key that is already active"""

    def __init__(self, key: int):
        super().__init__(f"Key {key} already exists")
        self.key = key


class StoreFullError(SlotStoreError):
    """Insert attempted with no free slot left"""

    def __init__(self, capacity: int):
        super().__init__(f"Store is full (capacity {capacity})")
        self.capacity = capacity


class KeyNotFoundError(SlotStoreError, KeyError):
    """Key is not present among active slots"""

    def __init__(self, key: int):
        super().__init__(f"Key {key} not found")
        self.key = key

    def __str__(self) -> str:
        return self.args[0]


class StoreIOError(SlotStoreError, IOError):
    """Backing file cannot be opened or created"""
    pass


class CorruptStoreError(SlotStoreError):
    """On-disk structure violates the file layout or list linkage"""
    pass


class InvalidRecordError(SlotStoreError, ValueError):
    """Record values cannot be stored (bad key, bad name)"""
    pass


class NameTooLongError(InvalidRecordError):
    """Encoded name exceeds the fixed name buffer"""
    pass


class SlotIndexError(SlotStoreError, IndexError):
    """Slot index outside [1, capacity]"""
    pass
