"""
Grocery list storage

Two interchangeable file formats back the same list of items:

- JSON: an array of ``{"name", "quantity", "category"}`` records
- CSV: a ``Item,Quantity,Category`` header followed by one row per item

Both implement the ``GroceryStorage`` contract: ``load()`` returns the
stored items (an empty list when the file is missing or empty) and
``save()`` overwrites the whole file.
"""
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .errors import InvalidArgument, IOFailure
from .item import GroceryItem

logger = logging.getLogger(__name__)

CSV_HEADER = "Item,Quantity,Category"


class GroceryStorage(ABC):
    """Load/save contract shared by every file format."""

    format_name = ""

    def __init__(self, path: Union[str, Path]):
        if path is None or not str(path).strip():
            raise InvalidArgument("Storage file name must not be empty")
        self.path = Path(path)

    @abstractmethod
    def load(self) -> List[GroceryItem]:
        """Read all items; missing or empty file gives an empty list."""

    @abstractmethod
    def save(self, items: Iterable[GroceryItem]) -> None:
        """Replace the file contents with ``items``."""

    def _read_text(self) -> Optional[str]:
        """Return the file contents, or None when there is nothing to load."""
        if not self.path.exists():
            logger.info("%s does not exist, starting with an empty list", self.path)
            return None
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise IOFailure(f"Failed to read {self.path}: {e}") from e
        if not text.strip():
            logger.warning("%s is empty, starting with an empty list", self.path)
            return None
        return text

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.path)!r})"


def write_atomic(path: Path, content: str) -> None:
    """
    Write ``content`` to ``path`` so readers never see a half-written file.

    The data goes to a temporary file in the same directory which then
    replaces the target.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except OSError as e:
        raise IOFailure(f"Failed to write {path}: {e}") from e


# JSON

class ItemRecord(BaseModel):
    """One element of the JSON array."""
    name: str
    quantity: int = Field(strict=True)
    category: Optional[str] = None


_records_adapter = TypeAdapter(List[ItemRecord])


class JsonStorage(GroceryStorage):
    """Stores the list as a JSON array of records."""

    format_name = "json"

    def load(self) -> List[GroceryItem]:
        text = self._read_text()
        if text is None:
            return []

        try:
            records = _records_adapter.validate_json(text)
            items = [GroceryItem(r.name, r.quantity, r.category) for r in records]
        except (ValidationError, ValueError) as e:
            logger.error("Failed to deserialize grocery list from %s", self.path)
            raise IOFailure(f"Failed to deserialize grocery list from {self.path}: {e}") from e

        logger.debug("Loaded %d items from %s", len(items), self.path)
        return items

    def save(self, items: Iterable[GroceryItem]) -> None:
        items = list(items)
        # Nothing is written unless every item is valid
        for item in items:
            item.validate()

        content = json.dumps([item.to_record() for item in items], ensure_ascii=False, indent=2)
        write_atomic(self.path, content + "\n")
        logger.info("Grocery list saved to %s", self.path)


# CSV

@dataclass
class ParsedRow:
    item: GroceryItem


@dataclass
class SkippedRow:
    line: str
    reason: str


def split_csv_line(line: str) -> List[str]:
    """
    Split a CSV line on commas that are not inside double quotes.

    A double quote only toggles quoting and is dropped from the output;
    doubled quotes are not treated as an escaped quote character.
    """
    fields = []
    current = []
    inside_quotes = False

    for char in line:
        if char == '"':
            inside_quotes = not inside_quotes
        elif char == ',' and not inside_quotes:
            fields.append(''.join(current))
            current = []
        else:
            current.append(char)

    fields.append(''.join(current))
    return fields


def parse_csv_row(line: str) -> Union[ParsedRow, SkippedRow]:
    """
    Turn one data line into an item.

    Rows that do not have exactly three fields are skipped rather than
    failing the load. A quantity that is not a number does fail it.
    """
    line = line.rstrip('\r\n')
    if not line.strip():
        return SkippedRow(line, "blank line")

    tokens = split_csv_line(line)
    if len(tokens) != 3:
        return SkippedRow(line, f"expected 3 fields, found {len(tokens)}")

    name, quantity, category = (token.strip() for token in tokens)
    try:
        quantity = int(quantity)
    except ValueError as e:
        raise IOFailure(f"Invalid quantity {quantity!r} in row {line!r}") from e

    try:
        return ParsedRow(GroceryItem(name, quantity, category))
    except InvalidArgument as e:
        raise IOFailure(f"Invalid row {line!r}: {e}") from e


class CsvStorage(GroceryStorage):
    """Stores the list as comma separated rows under a fixed header."""

    format_name = "csv"

    def load(self) -> List[GroceryItem]:
        text = self._read_text()
        if text is None:
            return []

        items = []
        lines = text.splitlines()
        for line_no, line in enumerate(lines[1:], start=2):
            row = parse_csv_row(line)
            if isinstance(row, SkippedRow):
                logger.debug("%s:%d skipped (%s)", self.path, line_no, row.reason)
                continue
            items.append(row.item)

        logger.debug("Loaded %d items from %s", len(items), self.path)
        return items

    def save(self, items: Iterable[GroceryItem]) -> None:
        # Values are written unquoted, so a comma inside a name or category
        # does not survive a save/load round trip.
        lines = [CSV_HEADER]
        for item in items:
            lines.append(f"{item.name},{item.quantity},{item.category}")

        write_atomic(self.path, '\n'.join(lines) + '\n')
        logger.info("Grocery list saved to %s", self.path)


STORAGE_FORMATS = {
    JsonStorage.format_name: JsonStorage,
    CsvStorage.format_name: CsvStorage,
}


def create_storage(fmt: Optional[str], path: Union[str, Path]) -> GroceryStorage:
    """Build the storage for a format name ('json' or 'csv')."""
    normalized = (fmt or "").strip().lower()
    storage_class = STORAGE_FORMATS.get(normalized)
    if storage_class is None:
        raise InvalidArgument(f"Unsupported format: {fmt}")
    return storage_class(path)
