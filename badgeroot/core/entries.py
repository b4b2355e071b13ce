"""
Allowlist entries and upload parsing.

Entries arrive as CSV text (`name,address` rows, optional header) or as a
JSON array of `{"name", "address"}` objects. Everything malformed is rejected
here, with the offending row and field, so the hashing layer only ever sees
well-formed addresses and non-empty names.
"""

import json
import re
from typing import Any, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from badgeroot.crypto import is_valid_address
from badgeroot.core.merkle.hashing import normalize_name
from badgeroot.utils.validation import validate_name


_LINE_SPLIT = re.compile(r"\r?\n")


class EntryValidationError(ValueError):
    """
    Raised when uploaded allowlist data is malformed.
    
    Attributes:
        row: 1-based row number in the upload, if known
        field: Offending field name ("name", "address"), if known
    """
    
    def __init__(self, message: str, row: Optional[int] = None, field: Optional[str] = None):
        super().__init__(message)
        self.row = row
        self.field = field


class AllowlistEntry(BaseModel):
    """
    One (name, address) pair of an allowlist.
    
    The raw name is kept as uploaded; trimming and lowercasing happen when
    hashing and when matching.
    """
    
    model_config = ConfigDict(frozen=True)
    
    name: str
    address: str
    
    @field_validator("name")
    @classmethod
    def _name_valid(cls, value: str) -> str:
        valid, err = validate_name(value)
        if not valid:
            raise ValueError(err)
        return value
    
    @field_validator("address")
    @classmethod
    def _address_format(cls, value: str) -> str:
        value = value.strip()
        if not is_valid_address(value):
            raise ValueError(f'invalid Ethereum address "{value}"')
        return value
    
    @property
    def normalized_name(self) -> str:
        return normalize_name(self.name)
    
    @property
    def normalized_address(self) -> str:
        return self.address.lower()


def _entry_from_row(name: str, address: str, row: int) -> AllowlistEntry:
    try:
        return AllowlistEntry(name=name, address=address)
    except ValidationError as e:
        first = e.errors()[0]
        field = str(first["loc"][0]) if first.get("loc") else None
        message = first["msg"].removeprefix("Value error, ")
        raise EntryValidationError(
            f"Invalid row {row}: {message}", row=row, field=field
        ) from None


def _is_header(line: str) -> bool:
    lowered = line.lower()
    return "name" in lowered or "address" in lowered


def parse_csv(csv_text: str) -> List[AllowlistEntry]:
    """
    Parse `name,address` CSV text into entries.
    
    The first line is treated as a header when it mentions "name" or
    "address". Blank lines are skipped; cells past the second are ignored.
    
    Raises:
        EntryValidationError: On a malformed row or when no entries remain
    """
    lines = _LINE_SPLIT.split(csv_text.strip())
    start = 1 if lines and _is_header(lines[0]) else 0
    
    entries = []
    for i in range(start, len(lines)):
        line = lines[i].strip()
        if not line:
            continue
        
        parts = [p.strip() for p in line.split(",")]
        if len(parts) < 2:
            raise EntryValidationError(
                f"Invalid row {i + 1}: expected name,address", row=i + 1
            )
        
        name, address = parts[0], parts[1]
        entries.append(_entry_from_row(name, address, i + 1))
    
    if not entries:
        raise EntryValidationError("No valid entries found in CSV")
    
    return entries


def parse_json(payload: Union[str, bytes, list, dict]) -> List[AllowlistEntry]:
    """
    Parse a JSON upload into entries.
    
    Accepts a JSON array of objects, or an object with an "entries" array,
    either as text or already decoded.
    
    Raises:
        EntryValidationError: On malformed JSON, a malformed row, or no entries
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise EntryValidationError(f"Invalid JSON: {e.msg}") from None
    
    if isinstance(payload, dict):
        payload = payload.get("entries")
    
    if not isinstance(payload, list):
        raise EntryValidationError("Expected a JSON array of {name, address} objects")
    
    entries = []
    for i, item in enumerate(payload, start=1):
        if not isinstance(item, dict):
            raise EntryValidationError(f"Invalid row {i}: expected an object", row=i)
        name = item.get("name")
        address = item.get("address")
        if not isinstance(name, str):
            raise EntryValidationError(f"Invalid row {i}: name is missing", row=i, field="name")
        if not isinstance(address, str):
            raise EntryValidationError(
                f"Invalid row {i}: address is missing", row=i, field="address"
            )
        entries.append(_entry_from_row(name, address, i))
    
    if not entries:
        raise EntryValidationError("No valid entries found in JSON")
    
    return entries


def entries_to_json(entries: Iterable[AllowlistEntry]) -> str:
    """Serialize entries as a compact JSON array (storage format)."""
    return json.dumps([e.model_dump() for e in entries], separators=(",", ":"))


def coerce_entries(entries: Iterable[Any]) -> List[AllowlistEntry]:
    """Accept entries as models or plain dicts."""
    result = []
    for i, item in enumerate(entries, start=1):
        if isinstance(item, AllowlistEntry):
            result.append(item)
        elif isinstance(item, dict):
            result.append(_entry_from_row(item.get("name", ""), item.get("address", ""), i))
        else:
            raise EntryValidationError(
                f"Invalid row {i}: expected an entry, got {type(item).__name__}", row=i
            )
    return result
