"""
Albums - Recently added stream

Compact summaries of public albums kept in an append-only Redis stream,
newest read first.
"""
import json
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from src.core.cache.manager import prefixed_key
from src.core.logging import component_logger

ENTRY_FIELD = "album"
DEFAULT_STREAM = "albums:recent:10"
DEFAULT_PREFIX = "mmt"


class RecentEntry(BaseModel):
    """One summary in the recency stream."""
    model_config = ConfigDict(extra="allow")

    id: str
    slug: Optional[str] = None
    name: Optional[str] = None
    owner: Optional[str] = None
    access: bool = False
    preview: Optional[str] = None
    description: Optional[str] = None
    stream_id: Optional[str] = None

    def payload(self) -> str:
        return json.dumps(self.model_dump(exclude={"stream_id"}))


def _text(value: Union[str, bytes, None]) -> Optional[str]:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RecentAlbumsStream:
    """
    Thin wrapper over XADD / XDEL / XREVRANGE.

    The Redis client is borrowed, never opened or closed here.
    """

    def __init__(self, redis, name: str = DEFAULT_STREAM, prefix: Optional[str] = DEFAULT_PREFIX, log=None):
        self.redis = redis
        self.name = name
        self.prefix = prefix
        self.log = log or component_logger("albums.stream")

    @property
    def key(self) -> str:
        return prefixed_key(self.prefix, self.name)

    async def add(self, entry: RecentEntry) -> str:
        """Append an entry, returns its stream id."""
        stream_id = await self.redis.xadd(self.key, {ENTRY_FIELD: entry.payload()})
        stream_id = _text(stream_id)
        self.log.debug(f"xadd {self.key} album {entry.id} -> {stream_id}")
        return stream_id

    async def remove(self, stream_id: str) -> int:
        """Delete an entry by id, returns the number of entries removed."""
        removed = await self.redis.xdel(self.key, stream_id)
        self.log.debug(f"xdel {self.key} {stream_id} -> {removed}")
        return int(removed or 0)

    async def recent(self, count: int = 10) -> List[RecentEntry]:
        """Newest entries first."""
        rows = await self.redis.xrevrange(self.key, max="+", min="-", count=count)
        entries = []
        for stream_id, fields in rows or []:
            entry = self._parse(_text(stream_id), fields)
            if entry is not None:
                entries.append(entry)
        return entries

    def _parse(self, stream_id: str, fields: Dict[Any, Any]) -> Optional[RecentEntry]:
        raw = None
        for key, value in (fields or {}).items():
            if _text(key) == ENTRY_FIELD:
                raw = _text(value)
                break
        if raw is None:
            self.log.warning(f"Stream entry {stream_id} has no '{ENTRY_FIELD}' field")
            return None
        try:
            data = json.loads(raw)
            return RecentEntry.model_validate({**data, "stream_id": stream_id})
        except ValueError as e:
            self.log.error(f"Malformed stream entry {stream_id}: {e}")
            return None
