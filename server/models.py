import sys
import threading
from pathlib import Path
from typing import List, Dict, Any, Optional

# Ensure src is in path
# this file is at PROJECT_ROOT/server/models.py
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root / 'src'))

from slotstore.store import RecordStore
from slotstore.constants import DEFAULT_STORE_PATH, DEFAULT_CAPACITY


class StoreManager:
    """Serializes HTTP requests onto one open RecordStore"""

    def __init__(self, store_path: str = DEFAULT_STORE_PATH,
                 capacity: int = DEFAULT_CAPACITY, sync: bool = False):
        self.store = RecordStore.open(store_path, capacity=capacity, sync=sync)
        self.lock = threading.Lock()

    def close(self) -> None:
        with self.lock:
            self.store.close()

    def get_info(self) -> Dict[str, Any]:
        with self.lock:
            return self.store.file_manager.get_store_info()

    def get_records(self) -> List[Dict[str, Any]]:
        with self.lock:
            return [row.to_dict() for row in self.store.dump_active()]

    def get_record(self, key: int) -> Optional[Dict[str, Any]]:
        with self.lock:
            result = self.store.search(key)
        if result is None:
            return None
        return {'index': result.index, 'key': result.record.key,
                'name': result.record.name}

    def add_record(self, key: int, name: str, ordered: bool = False) -> int:
        with self.lock:
            if ordered:
                return self.store.insert_ordered(key, name)
            return self.store.insert(key, name)

    def delete_record(self, key: int) -> bool:
        with self.lock:
            return self.store.delete(key)

    def get_slots(self) -> List[Dict[str, Any]]:
        with self.lock:
            return [row.to_dict() for row in self.store.dump_all()]

    def get_free_slots(self) -> List[Dict[str, Any]]:
        with self.lock:
            return [row.to_dict() for row in self.store.dump_free()]

    def verify(self) -> List[str]:
        with self.lock:
            return self.store.verify()
