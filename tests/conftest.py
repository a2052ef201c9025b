"""Test configuration and fixtures"""
import json
import threading
from typing import Dict, List, Optional

import pytest

from listening_card.config import Settings
from listening_card.exceptions import CacheError, UpstreamError
from listening_card.models.card import UserProfile, Track, Artist
from listening_card.services.cache import CacheStore


def make_raw_track(index: int, explicit: bool = False, images: int = 3) -> Dict:
    """Raw Spotify track object as returned inside item lists"""
    return {
        'id': f'track_{index}',
        'name': f'Song {index}',
        'explicit': explicit,
        'artists': [
            {'id': f'artist_{index}', 'name': f'Artist {index}'},
            {'id': 'guest', 'name': 'Guest'}
        ],
        'album': {
            'id': f'album_{index}',
            'name': f'Album {index}',
            'images': [
                {'url': f'https://i.scdn.co/image/{index}-{size}', 'height': size, 'width': size}
                for size in (640, 300, 64)[:images]
            ]
        },
        'external_urls': {'spotify': f'https://open.spotify.com/track/{index}'}
    }


def make_raw_artist(index: int, images: int = 3) -> Dict:
    return {
        'id': f'artist_{index}',
        'name': f'Artist {index}',
        'images': [{'url': f'https://i.scdn.co/artist/{index}-{size}'} for size in (640, 320, 160)[:images]],
        'external_urls': {'spotify': f'https://open.spotify.com/artist/{index}'}
    }


def make_track(index: int, explicit: bool = False) -> Track:
    return Track(
        title=f'Song {index}',
        artist=f'Artist {index}, Guest',
        album_title=f'Album {index}',
        album_image_url=f'https://i.scdn.co/image/{index}-64',
        explicit=explicit,
        url=f'https://open.spotify.com/track/{index}'
    )


class FakeResponse:
    """Just enough of requests.Response for SpotifyAPI"""

    def __init__(self, status_code: int = 200, body=None, text: Optional[str] = None):
        self.status_code = status_code
        if text is None:
            text = '' if body is None else json.dumps(body)
        self.text = text
        self.content = text.encode('utf-8')

    def json(self):
        return json.loads(self.text)


class DictCacheStore(CacheStore):
    """In-memory store that records every write"""

    name = 'dict'

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.writes: List[tuple] = []
        self.reads: List[str] = []
        self._lock = threading.Lock()

    def _get(self, key):
        with self._lock:
            self.reads.append(key)
            return self.data.get(key)

    def _set(self, key, value, ttl):
        with self._lock:
            self.writes.append((key, value, ttl))
            self.data[key] = value


class FailingCacheStore(CacheStore):
    """Store whose backend is always down"""

    name = 'failing'

    def __init__(self):
        self.attempts = 0

    def _get(self, key):
        self.attempts += 1
        raise CacheError("connection refused")

    def _set(self, key, value, ttl):
        self.attempts += 1
        raise CacheError("connection refused")


class FakeSpotifyAPI:
    """Stands in for SpotifyAPI, counting calls per operation"""

    def __init__(self, profile: Optional[UserProfile] = None, tracks: Optional[List[Track]] = None,
                 artists: Optional[List[Artist]] = None, now_playing: Optional[Track] = None,
                 error: Optional[UpstreamError] = None):
        self.profile = profile or UserProfile(id='u1', display_name='Alice')
        self.tracks = tracks if tracks is not None else [make_track(i) for i in range(10)]
        self.artists = artists if artists is not None else [Artist(name=f'Artist {i}', image_url='', url=f'u{i}') for i in range(10)]
        self.now_playing = now_playing
        self.error = error
        self.calls: List[tuple] = []
        self.tokens: List[str] = []
        self.closed = 0
        self._lock = threading.Lock()

    def __call__(self, access_token):
        # used as the api_factory
        with self._lock:
            self.tokens.append(access_token)
        return self

    def close(self):
        with self._lock:
            self.closed += 1

    def _record(self, *call):
        with self._lock:
            self.calls.append(call)
        if self.error is not None:
            raise self.error

    def get_user_profile(self):
        self._record('profile')
        return self.profile

    def get_now_playing(self, hide_explicit):
        self._record('now_playing', hide_explicit)
        return self.now_playing

    def get_recently_played(self, hide_explicit, limit):
        self._record('recently_played', hide_explicit, limit)
        return [t for t in self.tracks if not (hide_explicit and t.explicit)][:limit]

    def get_top_tracks(self, hide_explicit, limit):
        self._record('top_tracks', hide_explicit, limit)
        return [t for t in self.tracks if not (hide_explicit and t.explicit)][:limit]

    def get_top_artists(self, limit):
        self._record('top_artists', limit)
        return self.artists[:limit]


@pytest.fixture
def test_settings():
    """Settings independent of the environment"""
    return Settings(
        SPOTIFY_API_URL='https://api.test/v1',
        REQUEST_TIMEOUT_SECONDS=3,
        OVERFETCH_LIMIT=20,
        CACHE_BACKEND='none',
        CACHE_KEY_PREFIX='test',
        PROFILE_CACHE_TTL_SECONDS=None,
        TOP_ITEMS_CACHE_TTL_SECONDS=600,
        CACHE_WRITE_WORKERS=2
    )


@pytest.fixture
def cache():
    return DictCacheStore()


@pytest.fixture
def fake_api():
    return FakeSpotifyAPI()
