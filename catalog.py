"""
On-disk catalog:

    <root>/index.json              every scraped channel, one entry per id
    <root>/<id>/identity.json      latest ChannelIdentity
    <root>/<id>/collection.json    latest {"recent": [...], "popular": [...]}

Snapshots are overwritten on every run. The index is read, merged and written
back last, so it never points at a directory whose snapshots failed to write.
There is no locking: one writer at a time.
"""
import json
import logging
import os
from datetime import datetime
from typing import Any, List, Optional

import config
from errors import PersistenceIOFailure
from models import CatalogIndex, CatalogIndexEntry, ChannelIdentity, MediaCollection, MediaItem, utc_now_iso

INDEX_FILENAME = "index.json"
IDENTITY_FILENAME = "identity.json"
COLLECTION_FILENAME = "collection.json"


def _write_json(path: str, data: Any):
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
    except OSError as e:
        raise PersistenceIOFailure(path, e) from e
    logging.info("💾 %s", path)


def load_index(root: str = config.CATALOG_ROOT) -> CatalogIndex:
    """Read <root>/index.json; a missing file is an empty index, a corrupt one is an error."""
    path = os.path.join(root, INDEX_FILENAME)
    if not os.path.exists(path):
        return CatalogIndex()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("index root is not an object")
        return CatalogIndex.from_dict(data)
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise PersistenceIOFailure(path, e) from e


def update_index(identity: ChannelIdentity, root: str = config.CATALOG_ROOT,
                 now: Optional[datetime] = None) -> CatalogIndex:
    index = load_index(root)
    index.upsert(CatalogIndexEntry(
        id=identity.id,
        scraped_at=identity.scraped_at,
        storage_path=os.path.join(root, identity.id),
    ))
    index.last_updated = utc_now_iso(now)
    _write_json(os.path.join(root, INDEX_FILENAME), index.to_dict())
    return index


def persist(identity: ChannelIdentity, recent: List[MediaItem], popular: List[MediaItem],
            root: str = config.CATALOG_ROOT, now: Optional[datetime] = None) -> CatalogIndex:
    """Write both snapshots for `identity`, then merge it into the index. Returns the new index."""
    channel_dir = os.path.join(root, identity.id)
    try:
        os.makedirs(channel_dir, exist_ok=True)
    except OSError as e:
        raise PersistenceIOFailure(channel_dir, e) from e

    _write_json(os.path.join(channel_dir, IDENTITY_FILENAME), identity.to_dict())
    _write_json(os.path.join(channel_dir, COLLECTION_FILENAME),
                MediaCollection(recent=list(recent), popular=list(popular)).to_dict())
    return update_index(identity, root, now)
