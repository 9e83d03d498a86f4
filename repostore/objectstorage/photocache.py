"""
In-memory read-through cache for profile photos.

Photos are served on every page that shows a member, so we keep recently downloaded photos for a short time.
The cache cannot observe writes to the repository: whoever uploads or deletes a photo must invalidate it.
Absent photos are never cached, so a photo uploaded elsewhere shows up on the next request.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Awaitable, Callable

from repostore.config import PHOTO_CACHE_TTL_SECONDS
from repostore.models import CacheEntry, PhotoContent

logger = logging.getLogger("repostore.cache")

PhotoLoader = Callable[[int], Awaitable[PhotoContent | None]]


class PhotoCache:
    def __init__(
        self,
        ttl: float = PHOTO_CACHE_TTL_SECONDS,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.max_entries = max_entries
        self.clock = clock
        self._entries: OrderedDict[int, CacheEntry] = OrderedDict()
        # Bumped by every invalidation, so a load that started before it is not cached afterwards
        self._generations: dict[int, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def generation(self, member_id: int) -> tuple[int, int]:
        with self._lock:
            return self._epoch, self._generations.get(member_id, 0)

    def lookup(self, member_id: int) -> PhotoContent | None:
        """Return the cached photo if it is still fresh, dropping it if it expired"""
        with self._lock:
            entry = self._entries.get(member_id)
            if entry is None:
                return None
            if self.clock() - entry.cached_at >= self.ttl:
                logger.debug(f"Cached photo for member {member_id} expired")
                del self._entries[member_id]
                return None
            self._entries.move_to_end(member_id)
            return PhotoContent(content=entry.content, mime_type=entry.mime_type)


    def store(self, member_id: int, photo: PhotoContent, generation: tuple[int, int] | None = None) -> None:
        """Cache a photo. If generation is given, only do so if the member was not invalidated since."""
        entry = CacheEntry(member_id=member_id, content=photo.content, mime_type=photo.mime_type, cached_at=self.clock())
        with self._lock:
            if generation is not None and generation != (self._epoch, self._generations.get(member_id, 0)):
                logger.debug(f"Not caching photo for member {member_id}: invalidated while loading")
                return
            self._entries[member_id] = entry
            self._entries.move_to_end(member_id)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)

    def invalidate(self, member_id: int) -> None:
        with self._lock:
            self._generations[member_id] = self._generations.get(member_id, 0) + 1
            if self._entries.pop(member_id, None) is not None:
                logger.debug(f"Invalidated cached photo for member {member_id}")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._generations.clear()
            self._epoch += 1

    async def get(self, member_id: int, loader: PhotoLoader) -> PhotoContent | None:
        """Return the photo of this member from the cache, or load (and cache) it on a miss"""
        if (cached := self.lookup(member_id)) is not None:
            logger.debug(f"Photo cache hit for member {member_id}")
            return cached
        logger.debug(f"Photo cache miss for member {member_id}")
        generation = self.generation(member_id)
        photo = await loader(member_id)
        if photo is not None:
            self.store(member_id, photo, generation)
        return photo
