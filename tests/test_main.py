import json

import pytest

import listening_card.__main__ as main
from listening_card.user import User

from conftest import DictCacheStore, FakeSpotifyAPI


@pytest.fixture
def cli_settings(monkeypatch, tmp_path):
    monkeypatch.setattr(main.settings, 'OUTPUT_DIR', str(tmp_path))
    monkeypatch.setattr(main.settings, 'SPOTIFY_TOKEN', 'token-123')
    monkeypatch.setattr(main.settings, 'SHOW_TOP_ARTISTS', True)
    monkeypatch.setattr(main.settings, 'ITEM_LIMIT', 2)
    return main.settings


def test_run_writes_card(cli_settings, monkeypatch, tmp_path):
    api = FakeSpotifyAPI()
    store = DictCacheStore()
    monkeypatch.setattr(main, 'create_cache_store', lambda config: store)
    monkeypatch.setattr(main, 'User', lambda cache, config: User(cache, api_factory=api, config=config))

    main.run()

    card = json.loads((tmp_path / 'card.json').read_text())
    assert card['user_display_name'] == 'Alice'
    assert len(card['top_artists']) == 2
    assert api.tokens and set(api.tokens) == {'token-123'}
    # pending writes were drained before exit
    assert any(key.endswith(':profile:u1') for key in store.data)


def test_run_without_token_exits(monkeypatch):
    monkeypatch.setattr(main.settings, 'SPOTIFY_TOKEN', None)
    with pytest.raises(SystemExit) as exc_info:
        main.run()
    assert exc_info.value.code == 1


def test_run_purges_expired_entries_after_writes(cli_settings, monkeypatch):
    class PurgingStore(DictCacheStore):
        def __init__(self):
            super().__init__()
            self.writes_at_purge = None

        def purge_expired(self):
            self.writes_at_purge = len(self.writes)
            return 0

    api = FakeSpotifyAPI()
    store = PurgingStore()
    monkeypatch.setattr(main, 'create_cache_store', lambda config: store)
    monkeypatch.setattr(main, 'User', lambda cache, config: User(cache, api_factory=api, config=config))

    main.run()

    assert store.writes_at_purge is not None
    assert store.writes_at_purge == len(store.writes) > 0


def test_run_exits_when_cache_store_cannot_be_built(cli_settings, monkeypatch):
    def broken_store(config):
        raise RuntimeError("cache backend exploded")

    monkeypatch.setattr(main, 'create_cache_store', broken_store)

    with pytest.raises(SystemExit) as exc_info:
        main.run()
    assert exc_info.value.code == 1
