"""Cache-aside access to a user's Spotify data.

Profiles and top items are served from the cache store when present and
fetched from the Spotify API otherwise. Fetched values are written back on a
background thread after the result is already available to the caller, so a
slow or broken cache never delays or fails a request. Now playing and recently
played are time-sensitive and always fetched fresh.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from threading import Lock
from typing import Callable, List, Optional, Set, TypeVar

from listening_card.config import Settings, settings as default_settings
from listening_card.models.card import UserProfile, Track, Artist
from listening_card.services.cache import (
    CacheStore, Codec, PROFILE_CODEC, TRACKS_CODEC, ARTISTS_CODEC
)
from listening_card.services.spotify import SpotifyAPI

logger = logging.getLogger(__name__)

T = TypeVar('T')


class User:
    """Cache-aside orchestrator for the five card data classes"""

    def __init__(self, cache: CacheStore,
                 api_factory: Optional[Callable[[str], SpotifyAPI]] = None,
                 config: Optional[Settings] = None):
        self.cache = cache
        self.settings = config or default_settings
        self.api_factory = api_factory or self._default_api_factory
        self._writer = ThreadPoolExecutor(
            max_workers=self.settings.CACHE_WRITE_WORKERS,
            thread_name_prefix='cache-write'
        )
        self._pending: Set[Future] = set()
        self._pending_lock = Lock()

    def _default_api_factory(self, access_token: str) -> SpotifyAPI:
        return SpotifyAPI(
            token=access_token,
            base_url=self.settings.SPOTIFY_API_URL,
            timeout=self.settings.REQUEST_TIMEOUT_SECONDS,
            overfetch_limit=self.overfetch_limit
        )

    # --- Cache keys ---

    @property
    def overfetch_limit(self) -> int:
        """Items requested upstream for filtered recently-played/top-tracks calls, whatever the limit"""
        return self.settings.OVERFETCH_LIMIT

    def profile_key(self, user_id: str) -> str:
        return f"{self.settings.CACHE_KEY_PREFIX}:profile:{user_id}"

    def top_tracks_key(self, user_id: str, hide_explicit: bool, limit: int) -> str:
        content_filter = 'clean' if hide_explicit else 'all'
        return f"{self.settings.CACHE_KEY_PREFIX}:top-tracks:{user_id}:{content_filter}:{limit}"

    def top_artists_key(self, user_id: str, limit: int) -> str:
        return f"{self.settings.CACHE_KEY_PREFIX}:top-artists:{user_id}:{limit}"

    # --- Background writes ---

    def _write_to_cache(self, key: str, value: T, codec: Codec[T], ttl: Optional[int]) -> None:
        try:
            self.cache.set_value(key, value, codec, ttl)
            logger.debug(f"Saved {codec.name} to cache under {key}")
        except Exception as e:
            # Stores absorb backend errors; this covers encoding failures
            logger.error(f"Background cache write for {key} failed: {e}")

    def _schedule_write(self, key: str, value: T, codec: Codec[T], ttl: Optional[int]) -> None:
        """Fire-and-continue cache population; never awaited by the request path"""
        try:
            future = self._writer.submit(self._write_to_cache, key, value, codec, ttl)
        except RuntimeError as e:
            logger.warning(f"Cache writer unavailable, not caching {key}: {e}")
            return
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def _forget(self, future: Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)

    def wait_for_pending_writes(self, timeout: Optional[float] = None) -> None:
        """Block until scheduled cache writes finish (shutdown and tests only)"""
        with self._pending_lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def close(self) -> None:
        """Let in-flight writes complete, then stop the writer"""
        self._writer.shutdown(wait=True)

    # --- Cache-aside core ---

    def _cached(self, key: Optional[str], codec: Codec[T], ttl: Optional[int],
                fetch: Callable[[], T]) -> T:
        if key is not None:
            cached = self.cache.get_value(key, codec)
            if cached is not None:
                logger.debug(f"Cache hit for {key}")
                return cached
            logger.debug(f"Cache miss for {key}")
        # UpstreamError propagates and nothing is written
        value = fetch()
        if key is not None:
            self._schedule_write(key, value, codec, ttl)
        return value

    def _call_api(self, access_token: str, call: Callable[[SpotifyAPI], T]) -> T:
        api = self.api_factory(access_token)
        try:
            return call(api)
        finally:
            api.close()

    # --- Caller-facing operations ---

    def get_user_profile(self, access_token: str, user_id: Optional[str] = None) -> UserProfile:
        """
        Get the user's profile.

        With a user_id the cache is consulted first. Without one the profile
        is fetched and then cached under the id Spotify reports.
        """
        if user_id:
            cached = self.cache.get_value(self.profile_key(user_id), PROFILE_CODEC)
            if cached is not None:
                logger.debug(f"Cache hit for profile {user_id}")
                return cached

        profile = self._call_api(access_token, lambda api: api.get_user_profile())
        self._schedule_write(
            self.profile_key(profile.id), profile, PROFILE_CODEC,
            self.settings.PROFILE_CACHE_TTL_SECONDS
        )
        return profile

    def get_now_playing(self, access_token: str, hide_explicit: bool) -> Optional[Track]:
        """Get the track currently playing, or None when there is nothing to show"""
        return self._call_api(access_token, lambda api: api.get_now_playing(hide_explicit))

    def get_recently_played(self, access_token: str, hide_explicit: bool, limit: int) -> List[Track]:
        """Get up to limit recently played tracks, filtered before truncation"""
        return self._call_api(access_token, lambda api: api.get_recently_played(hide_explicit, limit))

    def get_top_tracks(self, user_id: Optional[str], access_token: str,
                       hide_explicit: bool, limit: int) -> List[Track]:
        """Get up to limit top tracks; cached per (user, filter, limit) when user_id is known"""
        key = self.top_tracks_key(user_id, hide_explicit, limit) if user_id else None
        return self._cached(
            key, TRACKS_CODEC, self.settings.TOP_ITEMS_CACHE_TTL_SECONDS,
            lambda: self._call_api(access_token, lambda api: api.get_top_tracks(hide_explicit, limit))
        )

    def get_top_artists(self, user_id: Optional[str], access_token: str, limit: int) -> List[Artist]:
        """Get up to limit top artists; cached per (user, limit) when user_id is known"""
        key = self.top_artists_key(user_id, limit) if user_id else None
        return self._cached(
            key, ARTISTS_CODEC, self.settings.TOP_ITEMS_CACHE_TTL_SECONDS,
            lambda: self._call_api(access_token, lambda api: api.get_top_artists(limit))
        )
