import hashlib
import json
from typing import Any, Mapping


def canonical_bytes(record: Mapping[str, Any]) -> bytes:
    # sorted keys + compact separators, so the same record always encodes the same way
    return json.dumps(record, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def hash_record(record: Any) -> str:
    """SHA-256 (lowercase hex) of a record's canonical JSON form.

    Accepts a mapping or anything exposing ``to_dict()`` (Block, Transaction).
    """
    if hasattr(record, "to_dict"):
        record = record.to_dict()
    return sha256_hex(canonical_bytes(record))


def hash_block(block) -> str:
    return hash_record(block)
