"""Spotify API integration service"""
import logging
from typing import Dict, List, Optional, Any

import requests

from listening_card.config import settings, MAX_UPSTREAM_LIMIT
from listening_card.exceptions import UpstreamError
from listening_card.models.card import UserProfile, Track, Artist

logger = logging.getLogger(__name__)

# --- Constants for Normalization ---
# Spotify lists images largest first (640, 300, 64); the card uses the smallest
CARD_IMAGE_INDEX = 2
ARTIST_SEPARATOR = ', '
# ------------------------------------

def _get_image_url(images_list: Optional[List[Dict]], index: int = CARD_IMAGE_INDEX) -> str:
    """Extracts the image URL at a fixed slot, empty string when upstream supplied fewer images."""
    if not isinstance(images_list, list) or len(images_list) <= index:
        return ''
    image = images_list[index]
    if isinstance(image, dict) and image.get('url'):
        return image['url']
    return ''

def _get_spotify_url(external_urls: Optional[Dict[str, str]]) -> Optional[str]:
    """Safely extracts the Spotify URL from external_urls."""
    if isinstance(external_urls, dict):
        return external_urls.get('spotify')
    return None

def _join_artist_names(artists_list: Optional[List[Dict]]) -> str:
    """Joins every contributing artist name in upstream order."""
    if not isinstance(artists_list, list):
        return ''
    names = [a.get('name') for a in artists_list if isinstance(a, dict) and a.get('name')]
    return ARTIST_SEPARATOR.join(names)

def _error_message(response: requests.Response) -> str:
    """Pulls Spotify's own error text out of a failed response when there is one."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get('error')
        if isinstance(error, dict) and error.get('message'):
            return error['message']
        if isinstance(error, str):
            return body.get('error_description') or error
    return f"Spotify API request failed with status {response.status_code}"

def normalize_track(track_data: Any) -> Optional[Track]:
    """Convert a raw track object into a Track, None when it lacks a name or url."""
    if not isinstance(track_data, dict):
        return None
    name = track_data.get('name')
    url = _get_spotify_url(track_data.get('external_urls'))
    if not name or not url:
        logger.warning(f"Skipping track without name or url: {track_data.get('id')}")
        return None
    album = track_data.get('album') if isinstance(track_data.get('album'), dict) else {}
    return Track(
        title=name,
        artist=_join_artist_names(track_data.get('artists')),
        album_title=album.get('name') or '',
        album_image_url=_get_image_url(album.get('images')),
        explicit=bool(track_data.get('explicit')),
        url=url
    )

def normalize_artist(artist_data: Any) -> Optional[Artist]:
    """Convert a raw artist object into an Artist, None when it lacks a name or url."""
    if not isinstance(artist_data, dict):
        return None
    name = artist_data.get('name')
    url = _get_spotify_url(artist_data.get('external_urls'))
    if not name or not url:
        logger.warning(f"Skipping artist without name or url: {artist_data.get('id')}")
        return None
    return Artist(name=name, image_url=_get_image_url(artist_data.get('images')), url=url)

def _validate_limit(limit: int) -> None:
    if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_UPSTREAM_LIMIT:
        raise ValueError(f"limit must be an integer between 1 and {MAX_UPSTREAM_LIMIT}, got {limit!r}")


class SpotifyAPI:
    """Handles the card's Spotify API calls and maps responses to card records"""

    def __init__(self, token: str, base_url: Optional[str] = None,
                 timeout: Optional[float] = None, overfetch_limit: Optional[int] = None):
        """
        Initialize with Spotify access token
        """
        if not token:
            raise ValueError("Spotify token cannot be empty")
        self.base_url = (base_url or settings.SPOTIFY_API_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT_SECONDS
        self.overfetch_limit = overfetch_limit if overfetch_limit is not None else settings.OVERFETCH_LIMIT
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {token}',
            'Accept': 'application/json'
        })

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> 'SpotifyAPI':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _make_request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict]:
        """
        Make one authenticated GET request. Returns None for an empty (204) body.

        Raises:
            UpstreamError: on network failure, timeout, non-2xx status or a non-JSON body
        """
        url = f'{self.base_url}/{endpoint}'
        logger.debug(f"Making request to {url} with params {params}")
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.error(f"Request to {url} timed out after {self.timeout}s")
            raise UpstreamError(f"Spotify API request timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error for {url}: {e}")
            raise UpstreamError(f"Spotify API request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            message = _error_message(response)
            logger.error(f"Spotify API returned {response.status_code} for {url}: {message}")
            raise UpstreamError(message, status_code=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            json_response = response.json()
        except ValueError as e:
            logger.error(f"Failed to decode JSON response from {url}. Response text: {response.text[:200]}")
            raise UpstreamError(f"Spotify API returned an invalid JSON body for {endpoint}", status_code=response.status_code) from e
        if not isinstance(json_response, dict):
            raise UpstreamError(f"Spotify API returned an unexpected body for {endpoint}", status_code=response.status_code)
        return json_response

    def _get_items(self, endpoint: str, limit: int) -> List[Any]:
        response_data = self._make_request(endpoint, params={'limit': limit})
        items = response_data.get('items') if response_data else None
        if not isinstance(items, list):
            logger.error(f"Unexpected response format for {endpoint}: {response_data}")
            raise UpstreamError(f"Spotify API returned no item list for {endpoint}")
        return items

    def _request_size(self, hide_explicit: bool, limit: int) -> int:
        # Filtering happens client-side, so a filtered request asks for a fixed larger page
        return self.overfetch_limit if hide_explicit else limit

    def _select_tracks(self, raw_tracks: List[Any], hide_explicit: bool, limit: int) -> List[Track]:
        tracks = [t for t in (normalize_track(raw) for raw in raw_tracks) if t is not None]
        if hide_explicit:
            tracks = [t for t in tracks if not t.explicit]
        return tracks[:limit]

    def get_user_profile(self) -> UserProfile:
        """Get the current user's id and display name"""
        logger.info("Fetching user profile...")
        user_info = self._make_request('me')
        if not user_info or not user_info.get('id'):
            logger.error(f"Invalid user profile response received: {user_info}")
            raise UpstreamError("Spotify API returned a profile without an id")
        return UserProfile(id=user_info['id'], display_name=user_info.get('display_name') or '')

    def get_now_playing(self, hide_explicit: bool) -> Optional[Track]:
        """
        Get the track currently playing.

        Returns None when nothing can be shown: no track reported, playback
        paused, or an explicit track while hide_explicit is set.
        """
        data = self._make_request('me/player/currently-playing')
        item = data.get('item') if data else None
        if not isinstance(item, dict) or not data.get('is_playing'):
            return None
        if hide_explicit and item.get('explicit'):
            return None
        return normalize_track(item)

    def get_recently_played(self, hide_explicit: bool, limit: int) -> List[Track]:
        """
        Get recently played tracks, most recent first

        Args:
            hide_explicit: Drop explicit tracks before applying the limit
            limit: Number of tracks to return (1-50)
        """
        _validate_limit(limit)
        request_size = self._request_size(hide_explicit, limit)
        logger.info(f"Fetching recently played (request size: {request_size}, limit: {limit})...")
        items = self._get_items('me/player/recently-played', request_size)
        raw_tracks = [item.get('track') for item in items if isinstance(item, dict)]
        return self._select_tracks(raw_tracks, hide_explicit, limit)

    def get_top_tracks(self, hide_explicit: bool, limit: int) -> List[Track]:
        """
        Get user's top tracks

        Args:
            hide_explicit: Drop explicit tracks before applying the limit
            limit: Number of tracks to return (1-50)
        """
        _validate_limit(limit)
        request_size = self._request_size(hide_explicit, limit)
        logger.info(f"Fetching top tracks (request size: {request_size}, limit: {limit})...")
        items = self._get_items('me/top/tracks', request_size)
        return self._select_tracks(items, hide_explicit, limit)

    def get_top_artists(self, limit: int) -> List[Artist]:
        """Get user's top artists

        Args:
            limit: Number of artists to fetch (1-50)
        """
        _validate_limit(limit)
        logger.info(f"Fetching top artists (limit: {limit})...")
        items = self._get_items('me/top/artists', limit)
        artists = [a for a in (normalize_artist(raw) for raw in items) if a is not None]
        return artists[:limit]
