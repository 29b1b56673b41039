"""Records produced by a scrape run and the on-disk catalog index."""
import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

UNKNOWN = "unknown"


def utc_now_iso(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with milliseconds and a Z suffix, e.g. 2024-05-01T10:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ListKind(enum.Enum):
    PRIMARY = "recent"
    SECONDARY = "popular"


@dataclass
class ChannelIdentity:
    id: str
    source_url: str
    scraped_at: str
    name: str = UNKNOWN
    subscribers: str = UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sourceUrl": self.source_url,
            "scrapedAt": self.scraped_at,
            "name": self.name,
            "subscribers": self.subscribers,
        }


@dataclass
class MediaItem:
    title: str
    url: str
    engagement_metric: str = UNKNOWN
    recency_metric: str = UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "engagementMetric": self.engagement_metric,
            "recencyMetric": self.recency_metric,
            "url": self.url,
        }


@dataclass
class MediaCollection:
    recent: List[MediaItem] = field(default_factory=list)
    popular: List[MediaItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recent": [it.to_dict() for it in self.recent],
            "popular": [it.to_dict() for it in self.popular],
        }


@dataclass
class CatalogIndexEntry:
    id: str
    scraped_at: str
    storage_path: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "scrapedAt": self.scraped_at, "storagePath": self.storage_path}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogIndexEntry":
        return cls(id=data["id"], scraped_at=data.get("scrapedAt", ""), storage_path=data.get("storagePath", ""))


@dataclass
class CatalogIndex:
    entries: List[CatalogIndexEntry] = field(default_factory=list)
    last_updated: str = ""

    def get(self, entry_id: str) -> Optional[CatalogIndexEntry]:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def upsert(self, entry: CatalogIndexEntry) -> None:
        """Replace any entry with the same id; the new one goes to the end."""
        self.entries = [e for e in self.entries if e.id != entry.id]
        self.entries.append(entry)

    def to_dict(self) -> Dict[str, Any]:
        return {"entries": [e.to_dict() for e in self.entries], "lastUpdated": self.last_updated}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogIndex":
        entries = [CatalogIndexEntry.from_dict(e) for e in data.get("entries") or []]
        return cls(entries=entries, last_updated=data.get("lastUpdated", ""))
