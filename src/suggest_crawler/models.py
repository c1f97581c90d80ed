"""Data models for crawled pages."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class PageData:
    """One successfully loaded page."""

    url: str
    text: str
    links: Tuple[str, ...] = ()

    def __post_init__(self):
        # Accept any sequence for links but store it immutably.
        object.__setattr__(self, "links", tuple(self.links))

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "text": self.text, "links": list(self.links)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PageData":
        return cls(url=data["url"], text=data.get("text", ""), links=data.get("links", []))


@dataclass
class CacheStats:
    """Snapshot of the content cache counters."""

    size: int = 0
    hits: int = 0
    misses: int = 0

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups served from the cache."""
        lookups = self.hits + self.misses
        if lookups == 0:
            return 0.0
        return self.hits / lookups


@dataclass
class ClassCrawlRecord:
    """Pages collected for one service class during a collection run."""

    class_name: str
    doc_link: str
    doc_name: Optional[str] = None
    pages: List[PageData] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "class_name": self.class_name,
            "doc_link": self.doc_link,
            "doc_name": self.doc_name,
            "error": self.error,
            "pages": [page.to_dict() for page in self.pages],
        }
