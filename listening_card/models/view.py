"""Card options and view-model definitions"""
from typing import List, Optional
from pydantic import BaseModel, Field

from listening_card.models.card import Track, Artist

class CardOptions(BaseModel):
    """Which sections a card shows and how its items are filtered"""
    show_border: bool = False
    show_date: bool = False
    show_title: bool = True
    custom_title: Optional[str] = None
    hide_explicit: bool = False
    show_now_playing: bool = True
    show_recently_played: bool = False
    show_top_tracks: bool = True
    show_top_artists: bool = False
    item_limit: int = Field(5, ge=1, le=10, description="Items per list section")

class DataCardProps(BaseModel):
    """
    Everything the view layer needs to render one card.

    Sections that failed upstream are left empty and their messages are
    joined into error_message, so the rest of the card still renders.
    """
    user_display_name: str = ''
    show_border: bool
    show_date: bool
    custom_title: Optional[str] = None
    show_title: bool
    hide_explicit: bool
    show_now_playing: bool
    now_playing: Optional[Track] = None
    show_recently_played: bool
    recently_played: List[Track] = []
    show_top_tracks: bool
    top_tracks: List[Track] = []
    show_top_artists: bool
    top_artists: List[Artist] = []
    item_limit: int
    error_message: Optional[str] = None
