import pytest
from orderboard import get_db
from orderboard.constants.table import DEFAULT_HEADERS, EMAIL_HEADER
from orderboard.errors import PermissionDenied, ValidationError
from orderboard.models import AuditLog, TableConfig
from orderboard.services.feed import ChangeFeed
from orderboard.services.row_store import OrderTable
from orderboard.services.schema_registry import SchemaRegistry, detect_stale_schema
from orderboard.services.store import load_table_config
from tests.test_utils_seed import seed_actors


def _store_headers(headers):
    session = get_db()
    session.add(TableConfig(id='default', headers=headers)); session.commit()


def test_detect_stale_schema_cases():
    assert detect_stale_schema(list(DEFAULT_HEADERS)) is False
    assert detect_stale_schema([]) is True
    assert detect_stale_schema(None) is True
    assert detect_stale_schema([''] + list(DEFAULT_HEADERS[1:])) is True
    assert detect_stale_schema(list(DEFAULT_HEADERS[:5])) is True
    legacy = list(DEFAULT_HEADERS); legacy[4] = 'DADO 4'
    assert detect_stale_schema(legacy) is True
    lower = list(DEFAULT_HEADERS); lower[2] = 'dado extra'
    assert detect_stale_schema(lower) is True
    blank = list(DEFAULT_HEADERS); blank[7] = '   '
    assert detect_stale_schema(blank) is True


def test_missing_config_is_created_with_canonical_headers(app_ctx):
    registry = SchemaRegistry(ChangeFeed())
    assert registry.load_or_initialize() == list(DEFAULT_HEADERS)
    assert load_table_config(get_db()) == {'headers': list(DEFAULT_HEADERS)}


def test_legacy_headers_are_migrated_and_audited(app_ctx):
    legacy = ['', 'DADO 1', 'DADO 2', 'DADO 3']
    _store_headers(legacy)
    registry = SchemaRegistry(ChangeFeed())
    assert registry.load_or_initialize() == list(DEFAULT_HEADERS)
    assert load_table_config(get_db())['headers'] == list(DEFAULT_HEADERS)
    log = get_db().query(AuditLog).filter_by(action='TABLE.HEADERS.MIGRATE').one()
    assert log.meta['discarded'] == legacy
    assert log.actor_user_id == 'system'


def test_first_header_forced_to_email(app_ctx):
    stored = ['Cliente'] + list(DEFAULT_HEADERS[1:])
    _store_headers(stored)
    registry = SchemaRegistry(ChangeFeed())
    headers = registry.load_or_initialize()
    assert headers[0] == EMAIL_HEADER
    assert headers[1:] == list(DEFAULT_HEADERS[1:])
    assert load_table_config(get_db())['headers'][0] == EMAIL_HEADER


def test_report_only_mode_keeps_stale_headers(app_ctx):
    _store_headers(['', 'Número', 'Data'])
    registry = SchemaRegistry(ChangeFeed(), auto_migrate=False)
    assert registry.load_or_initialize() == [EMAIL_HEADER, 'Número', 'Data']
    assert get_db().query(AuditLog).filter_by(action='TABLE.HEADERS.MIGRATE').count() == 0


def test_set_headers_persists_and_publishes(app_ctx):
    actors = seed_actors()
    feed = ChangeFeed()
    registry = SchemaRegistry(feed)
    registry.load_or_initialize()
    table = OrderTable(feed, registry)
    seen = []
    feed.subscribe('table-config', seen.append)
    renamed = list(DEFAULT_HEADERS); renamed[0] = 'Cliente'; renamed[3] = 'Destinatário'
    headers = registry.set_headers(actors['master'][1], renamed)
    assert headers[0] == EMAIL_HEADER
    assert headers[3] == 'Destinatário'
    assert table.headers == headers
    assert seen and seen[-1]['headers'] == headers
    log = get_db().query(AuditLog).filter_by(action='TABLE.HEADERS.SET').one()
    assert log.meta['changes']['headers']['after'][3] == 'Destinatário'
    assert log.actor_role == 'MASTER'


def test_set_headers_rejects_stale_lists_and_clients(app_ctx):
    actors = seed_actors()
    registry = SchemaRegistry(ChangeFeed())
    registry.load_or_initialize()
    with pytest.raises(ValidationError):
        registry.set_headers(actors['operator'][1], ['Email', 'DADO 1'])
    with pytest.raises(ValidationError):
        registry.set_headers(actors['operator'][1], [])
    with pytest.raises(PermissionDenied):
        registry.set_headers(actors['client'][1], list(DEFAULT_HEADERS))
    assert registry.headers == list(DEFAULT_HEADERS)
