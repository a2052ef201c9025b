"""Display-ready records produced from Spotify API data"""
from dataclasses import dataclass, asdict
from typing import Any, Dict

@dataclass(frozen=True)
class UserProfile:
    """Minimal profile needed to render and cache a card"""
    id: str
    display_name: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UserProfile':
        return cls(id=data['id'], display_name=data['display_name'])

@dataclass(frozen=True)
class Track:
    """Normalized track as shown on the card"""
    title: str
    artist: str  # comma-joined artist names in upstream order
    album_title: str
    album_image_url: str
    explicit: bool
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Track':
        return cls(
            title=data['title'],
            artist=data['artist'],
            album_title=data['album_title'],
            album_image_url=data['album_image_url'],
            explicit=bool(data['explicit']),
            url=data['url']
        )

@dataclass(frozen=True)
class Artist:
    """Normalized artist as shown on the card"""
    name: str
    image_url: str
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Artist':
        return cls(name=data['name'], image_url=data['image_url'], url=data['url'])
