"""
SlotStore - Format Constants
Constants for the slot file layout, link sentinels, and default configuration.
"""

import struct

# Link / key sentinels
NIL = -1  # "no slot" in any link field
FREE_KEY = -1  # Key value marking a free slot

# Record Layout
NAME_SIZE = 30  # Fixed-width name buffer, no terminator when full
KEY_MIN = -(2 ** 31)
KEY_MAX = 2 ** 31 - 1

# Header: count, first_active, last_active, free_head, capacity
HEADER_STRUCT = struct.Struct('<5i')
# Slot: next, prev, key, name
SLOT_STRUCT = struct.Struct(f'<3i{NAME_SIZE}s')

# Header and slots share one unit width, padded to 4-byte alignment
UNIT_ALIGNMENT = 4
SLOT_SIZE = -(-max(HEADER_STRUCT.size, SLOT_STRUCT.size) // UNIT_ALIGNMENT) * UNIT_ALIGNMENT
HEADER_SLOT_INDEX = 0

# Defaults
DEFAULT_STORE_PATH = "records.dat"
DEFAULT_CAPACITY = 10
