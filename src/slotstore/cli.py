"""
Command Line Interface Module - Interactive shell over a slot file
"""

import argparse
import cmd
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .store import RecordStore, SlotView
from .constants import DEFAULT_STORE_PATH
from .exceptions import SlotStoreError, StoreIOError


MENU = """
=== MENU ===
1. Insert
2. Insert ordered
3. Delete
4. Search
5. Print active records
6. Print all slots
7. Print free slots
0. Exit"""


class SlotStoreREPL(cmd.Cmd):
    """Interactive REPL for a SlotStore file"""

    intro = """
    ╔══════════════════════════════════════╗
    ║      SlotStore Record File           ║
    ║      Type 'help' for commands        ║
    ║      or 'menu' for the numbered menu ║
    ╚══════════════════════════════════════╝
    """
    prompt = "slotstore> "

    def __init__(self, store: RecordStore):
        super().__init__()
        self.store = store
        self.prompt = f"slotstore({store.file_manager.store_path.name})> "

    def emptyline(self) -> bool:
        return False

    def do_quit(self, arg):
        """Exit the REPL"""
        print("Goodbye!")
        return True

    def do_exit(self, arg):
        """Exit the REPL"""
        return self.do_quit(arg)

    def do_EOF(self, arg):
        """Exit on Ctrl-D"""
        print()
        return self.do_quit(arg)

    # --------------------------------------------------------------------
    # Record commands
    # --------------------------------------------------------------------

    def do_insert(self, arg):
        """insert <key> <name> - append a record"""
        self._insert(arg, ordered=False)

    def do_insert_ordered(self, arg):
        """insert_ordered <key> <name> - insert keeping keys ascending"""
        self._insert(arg, ordered=True)

    def do_delete(self, arg):
        """delete <key> - remove a record"""
        key = self._parse_key(arg)
        if key is None:
            return
        if self.store.delete(key):
            print("Record deleted")
        else:
            print(f"Key {key} not found")

    def do_search(self, arg):
        """search <key> - look up a record"""
        key = self._parse_key(arg)
        if key is None:
            return
        result = self.store.search(key)
        if result is None:
            print(f"Key {key} not found")
        else:
            print(f"Found at slot {result.index}: "
                  f"Key={result.record.key} | Name={result.record.name}")

    def _insert(self, arg: str, ordered: bool) -> None:
        parts = arg.split(maxsplit=1)
        if len(parts) != 2:
            print("Usage: insert <key> <name>")
            return
        key = self._parse_key(parts[0])
        if key is None:
            return
        self._run_insert(key, parts[1], ordered)

    def _run_insert(self, key: int, name: str, ordered: bool) -> None:
        try:
            if ordered:
                index = self.store.insert_ordered(key, name)
            else:
                index = self.store.insert(key, name)
            print(f"Inserted key {key} at slot {index}")
        except SlotStoreError as e:
            print(f"Error: {e}")

    def _parse_key(self, text: str) -> Optional[int]:
        try:
            return int(text.strip())
        except ValueError:
            print(f"Invalid key: {text.strip()!r}")
            return None

    # --------------------------------------------------------------------
    # Diagnostics
    # --------------------------------------------------------------------

    def do_active(self, arg):
        """Print active records in list order"""
        header = self.store.header
        print("\n=== ACTIVE RECORDS ===")
        self._display_header(header, with_capacity=False)
        rows = self.store.dump_active()
        if not rows:
            print("List is empty")
            return
        self._display_slots(rows)

    def do_all(self, arg):
        """Print every slot in physical order"""
        print("\n=== FULL STRUCTURE ===")
        self._display_header(self.store.header, with_capacity=True)
        self._display_slots(self.store.dump_all())

    def do_free(self, arg):
        """Print the free list from its head"""
        header = self.store.header
        print("\n=== FREE SLOTS ===")
        print(f"Free head: {header.free_head}")
        rows = self.store.dump_free()
        if not rows:
            print("No free slots")
            return
        for row in rows:
            print(f"  Slot {row.index} -> Next: {row.next}")

    def do_verify(self, arg):
        """Check list and partition invariants"""
        try:
            problems = self.store.verify()
        except SlotStoreError as e:
            print(f"Error: {e}")
            return
        if not problems:
            print("Store is consistent")
            return
        print(f"{len(problems)} problem(s) found:")
        for problem in problems:
            print(f"  - {problem}")

    def do_info(self, arg):
        """Show file and header information"""
        info = self.store.file_manager.get_store_info()
        for field, value in info.items():
            print(f"{field:<14}: {value}")

    def do_menu(self, arg):
        """Show the numbered menu"""
        print(MENU)

    def _display_header(self, header, with_capacity: bool) -> None:
        print(f"Count: {header.count} | First: {header.first_active} | "
              f"Last: {header.last_active} | Free: {header.free_head}"
              + (f" | Capacity: {header.capacity}" if with_capacity else ""))

    def _display_slots(self, rows: List[SlotView]) -> None:
        """Display slot rows in table format"""
        columns = ["Slot", "State", "Key", "Name", "Next", "Prev"]
        data = []
        for row in rows:
            data.append([
                row.index,
                "active" if row.active else "free",
                row.key if row.active else "[FREE]",
                row.name if row.active else "",
                row.next,
                row.prev,
            ])

        col_widths = []
        for i, col in enumerate(columns):
            max_len = len(col)
            for values in data:
                max_len = max(max_len, len(str(values[i])))
            col_widths.append(max_len)

        print(" | ".join(f"{col:<{width}}" for col, width in zip(columns, col_widths)))
        print("-+-".join("-" * width for width in col_widths))
        for values in data:
            print(" | ".join(f"{str(val):<{width}}" for val, width in zip(values, col_widths)))

    # --------------------------------------------------------------------
    # Numbered menu
    # --------------------------------------------------------------------

    def default(self, line: str):
        """Handle the numbered menu choices"""
        choice = line.strip()
        if choice == "0":
            return self.do_quit("")
        try:
            if choice in ("1", "2"):
                key = self._parse_key(input("Key: "))
                if key is not None:
                    self._run_insert(key, input("Name: "), ordered=choice == "2")
                return False
            if choice == "3":
                self.do_delete(input("Key to delete: "))
                return False
            if choice == "4":
                self.do_search(input("Key to search: "))
                return False
        except EOFError:
            # Ctrl-D at a prompt cancels the choice
            print("\nCancelled")
            return False

        if choice == "5":
            self.do_active("")
        elif choice == "6":
            self.do_all("")
        elif choice == "7":
            self.do_free("")
        else:
            print(f"Unknown command: {line}")
        return False

    def onecmd(self, line: str):
        try:
            return super().onecmd(line)
        except SlotStoreError as e:
            print(f"Error: {e}")
            return False


def open_store(path: str, sync: bool = False) -> RecordStore:
    """
    Open the store at path, asking for a capacity when it does not exist yet

    Raises:
        StoreIOError: If the file cannot be opened or created
    """
    if Path(path).exists():
        return RecordStore.open(path, sync=sync)

    print(f"Store {path} does not exist. Creating a new one...")
    while True:
        try:
            capacity = int(input("Capacity: "))
        except ValueError:
            capacity = 0
        except EOFError:
            raise StoreIOError(f"No capacity given for new store {path}")
        if capacity > 0:
            break
        print("Capacity must be a positive integer")
    return RecordStore.open(path, capacity=capacity, sync=sync)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="slotstore",
                                     description="Fixed-capacity record file shell")
    parser.add_argument("path", nargs="?", default=DEFAULT_STORE_PATH,
                        help=f"slot file (default: {DEFAULT_STORE_PATH})")
    parser.add_argument("--sync", action="store_true",
                        help="fsync after every write")
    parser.add_argument("--log-level", default="ERROR",
                        help="loguru level for engine diagnostics (default: ERROR)")
    args = parser.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    try:
        store = open_store(args.path, sync=args.sync)
    except SlotStoreError as e:
        print(f"Error opening store: {e}", file=sys.stderr)
        return 1

    repl = SlotStoreREPL(store)
    try:
        repl.cmdloop()
    except KeyboardInterrupt:
        print("\nExiting...")
    finally:
        store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
