from __future__ import annotations

import json
import logging

from acopio.store import SLOT_NAMES, Store

logger = logging.getLogger(__name__)


def export_backup(store: Store) -> str:
    """JSON document with exactly one key per slot, each holding the raw array."""
    return json.dumps({slot: store.read_raw(slot) for slot in SLOT_NAMES}, ensure_ascii=False, indent=2)


def parse_backup(content: bytes | str) -> dict[str, list]:
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8")
        except UnicodeDecodeError:
            raise ValueError("The backup file is not UTF-8 text.")
    try:
        payload = json.loads(content)
    except ValueError:
        raise ValueError("The backup file is not valid JSON.")
    if not isinstance(payload, dict):
        raise ValueError("The backup file must contain a JSON object.")

    missing = [s for s in SLOT_NAMES if s not in payload]
    if missing:
        raise ValueError(f"The backup file is missing: {', '.join(missing)}.")
    not_lists = [s for s in SLOT_NAMES if not isinstance(payload[s], list)]
    if not_lists:
        raise ValueError(f"These backup entries are not lists: {', '.join(not_lists)}.")
    return {slot: payload[slot] for slot in SLOT_NAMES}


def restore_backup(store: Store, content: bytes | str) -> dict[str, int]:
    """
    Replace every slot with the backup's arrays. Validation happens before
    any write, so a rejected file leaves the store untouched.
    Returns the number of records restored per slot.
    """
    slots = parse_backup(content)
    store.replace_all(slots)
    counts = {slot: len(values) for slot, values in slots.items()}
    logger.info("Restored backup: %s", counts)
    return counts
