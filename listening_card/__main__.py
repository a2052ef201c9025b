"""Entry point for card generation"""
import json
import logging
import os
import sys
import traceback

from listening_card.config import settings
from listening_card.card import Card
from listening_card.models.view import CardOptions
from listening_card.services.cache import create_cache_store
from listening_card.user import User

logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
logger = logging.getLogger(__name__)

def options_from_settings() -> CardOptions:
    """Card options taken from the environment"""
    return CardOptions(
        custom_title=settings.CUSTOM_TITLE,
        hide_explicit=settings.HIDE_EXPLICIT,
        show_now_playing=settings.SHOW_NOW_PLAYING,
        show_recently_played=settings.SHOW_RECENTLY_PLAYED,
        show_top_tracks=settings.SHOW_TOP_TRACKS,
        show_top_artists=settings.SHOW_TOP_ARTISTS,
        item_limit=settings.ITEM_LIMIT
    )

def run() -> None:
    """Generate a card for SPOTIFY_TOKEN and write it to OUTPUT_DIR."""
    if not settings.SPOTIFY_TOKEN:
        logger.error("SPOTIFY_TOKEN is required")
        sys.exit(1)

    cache = None
    user = None
    try:
        cache = create_cache_store(settings)
        user = User(cache, config=settings)

        # Log config (excluding sensitive data)
        logger.info("Using configuration:")
        safe_config = settings.model_dump(exclude={'SPOTIFY_TOKEN', 'DB_PASSWORD', 'DATABASE_URL', 'REDIS_URL'})
        logger.info(json.dumps(safe_config, indent=2))

        card_props = Card(user).generate(settings.SPOTIFY_TOKEN, options_from_settings())

        os.makedirs(settings.OUTPUT_DIR, exist_ok=True)
        output_path = os.path.join(settings.OUTPUT_DIR, "card.json")
        with open(output_path, 'w') as f:
            f.write(card_props.model_dump_json(indent=2))

        logger.info(f"Card generation complete: {output_path}")
        if card_props.error_message:
            logger.warning(f"Card rendered with errors: {card_props.error_message}")

    except Exception as e:
        logger.error(f"Error during card generation: {e}")
        traceback.print_exc()
        sys.exit(1)
    finally:
        if user is not None:
            user.wait_for_pending_writes()
            user.close()
        if cache is not None:
            cache.purge_expired()
            cache.close()

if __name__ == "__main__":
    run()
