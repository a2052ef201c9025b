"""Card assembly: gathers every section of a listening card for one user"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from listening_card.exceptions import UpstreamError
from listening_card.models.view import CardOptions, DataCardProps
from listening_card.user import User

logger = logging.getLogger(__name__)

SECTION_WORKERS = 4

class Card:
    """Builds DataCardProps from the user's profile and the enabled sections"""

    def __init__(self, user: User):
        self.user = user

    def _sections(self, access_token: str, user_id: Optional[str],
                  options: CardOptions) -> Dict[str, Callable[[], Any]]:
        user, limit, hide = self.user, options.item_limit, options.hide_explicit
        sections: Dict[str, Callable[[], Any]] = {}
        if options.show_now_playing:
            sections['now_playing'] = lambda: user.get_now_playing(access_token, hide)
        if options.show_recently_played:
            sections['recently_played'] = lambda: user.get_recently_played(access_token, hide, limit)
        if options.show_top_tracks:
            sections['top_tracks'] = lambda: user.get_top_tracks(user_id, access_token, hide, limit)
        if options.show_top_artists:
            sections['top_artists'] = lambda: user.get_top_artists(user_id, access_token, limit)
        return sections

    def generate(self, access_token: str, options: Optional[CardOptions] = None,
                 user_id: Optional[str] = None) -> DataCardProps:
        """
        Fetch the profile, then every enabled section concurrently.

        An UpstreamError in one section is recorded in error_message and leaves
        that section empty; the remaining sections are unaffected. If the
        profile fails, top items are fetched without caching since the user id
        is unknown.
        """
        options = options or CardOptions()
        errors: List[str] = []
        values: Dict[str, Any] = {}

        display_name = ''
        try:
            profile = self.user.get_user_profile(access_token, user_id)
            user_id, display_name = profile.id, profile.display_name
            logger.info(f"Building card for user {user_id}")
        except UpstreamError as e:
            logger.error(f"Could not fetch user profile: {e.message}")
            errors.append(e.message)

        sections = self._sections(access_token, user_id, options)
        with ThreadPoolExecutor(max_workers=SECTION_WORKERS, thread_name_prefix='card-section') as pool:
            futures = {name: pool.submit(fetch) for name, fetch in sections.items()}
            for name, future in futures.items():
                try:
                    values[name] = future.result()
                except UpstreamError as e:
                    logger.error(f"Could not fetch {name.replace('_', ' ')}: {e.message}")
                    errors.append(e.message)

        return DataCardProps(
            user_display_name=display_name,
            show_border=options.show_border,
            show_date=options.show_date,
            custom_title=options.custom_title,
            show_title=options.show_title,
            hide_explicit=options.hide_explicit,
            show_now_playing=options.show_now_playing,
            now_playing=values.get('now_playing'),
            show_recently_played=options.show_recently_played,
            recently_played=values.get('recently_played', []),
            show_top_tracks=options.show_top_tracks,
            top_tracks=values.get('top_tracks', []),
            show_top_artists=options.show_top_artists,
            top_artists=values.get('top_artists', []),
            item_limit=options.item_limit,
            error_message='; '.join(dict.fromkeys(errors)) or None
        )
