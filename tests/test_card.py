import pytest
from pydantic import ValidationError

from listening_card.card import Card
from listening_card.exceptions import UpstreamError
from listening_card.models.view import CardOptions
from listening_card.user import User

from conftest import FakeSpotifyAPI, make_track


class _PartlyBrokenAPI(FakeSpotifyAPI):
    def get_recently_played(self, hide_explicit, limit):
        self._record('recently_played', hide_explicit, limit)
        raise UpstreamError('Service unavailable', status_code=503)


class _NoProfileAPI(FakeSpotifyAPI):
    def get_user_profile(self):
        self._record('profile')
        raise UpstreamError('Insufficient client scope', status_code=403)


@pytest.fixture
def make_user(cache, test_settings):
    users = []

    def factory(api):
        user = User(cache, api_factory=api, config=test_settings)
        users.append(user)
        return user

    yield factory
    for user in users:
        user.close()


def test_card_with_every_section(make_user):
    api = FakeSpotifyAPI(now_playing=make_track(42), tracks=[make_track(i, explicit=(i < 2)) for i in range(8)])
    options = CardOptions(hide_explicit=True, show_recently_played=True, show_top_artists=True, item_limit=3)

    props = Card(make_user(api)).generate('token', options)

    assert props.user_display_name == 'Alice'
    assert props.now_playing == make_track(42)
    assert [t.title for t in props.top_tracks] == ['Song 2', 'Song 3', 'Song 4']
    assert len(props.recently_played) == 3
    assert len(props.top_artists) == 3
    assert props.error_message is None
    assert props.item_limit == 3


def test_disabled_sections_are_not_fetched(make_user):
    api = FakeSpotifyAPI()
    options = CardOptions(show_now_playing=False, show_top_tracks=False)

    props = Card(make_user(api)).generate('token', options)

    assert [c[0] for c in api.calls] == ['profile']
    assert props.top_tracks == [] and props.now_playing is None


def test_failed_section_does_not_hide_the_others(make_user):
    api = _PartlyBrokenAPI()
    options = CardOptions(show_recently_played=True)

    props = Card(make_user(api)).generate('token', options)

    assert props.recently_played == []
    assert len(props.top_tracks) == 5
    assert props.error_message == 'Service unavailable'


def test_profile_failure_still_renders_uncached_sections(make_user, cache):
    api = _NoProfileAPI()

    props = Card(make_user(api)).generate('token', CardOptions())

    assert props.user_display_name == ''
    assert props.error_message == 'Insufficient client scope'
    assert len(props.top_tracks) == 5
    assert cache.writes == []


def test_card_serializes_records(make_user):
    api = FakeSpotifyAPI(now_playing=make_track(1))

    data = Card(make_user(api)).generate('token').model_dump()

    assert data['now_playing']['title'] == 'Song 1'
    assert data['top_tracks'][0]['album_image_url'] == 'https://i.scdn.co/image/0-64'


@pytest.mark.parametrize('item_limit', [0, 11])
def test_item_limit_bounds(item_limit):
    with pytest.raises(ValidationError):
        CardOptions(item_limit=item_limit)
