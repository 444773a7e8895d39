import pytest
from orderboard.constants.permissions import ALL_CAPABILITY_CODES, ROLE_CAPABILITIES, capabilities_for
from orderboard.errors import PermissionDenied
from orderboard.services.context import ActorContext
from orderboard.services.policy import assert_can_view_row, can_view_row, visible_rows
from orderboard.services.row_store import OrderRow


def _actor(role, user_id='u1', **kw):
    return ActorContext(user_id=user_id, email=f'{user_id}@demo.com', role=role,
                        capabilities=capabilities_for(role, **kw))


def _row(row_id, owner_id):
    return OrderRow(id=row_id, owner_id=owner_id, owner_email='', columns=[''] * 13, status='PENDENTE')


def test_matrix_codes_are_known():
    for role, codes in ROLE_CAPABILITIES.items():
        for code in codes:
            assert code in ALL_CAPABILITY_CODES, (role, code)


def test_operator_capabilities():
    caps = capabilities_for('OPERATOR')
    assert {'ORDERS.READ_ALL', 'ORDERS.EDIT', 'ORDERS.STATUS', 'ORDERS.CREATE', 'ORDERS.DELETE',
            'ORDERS.ATTACH', 'TABLE.HEADERS'} <= caps
    assert 'ORDERS.FORWARD' not in caps
    assert 'ACCOUNTS.MANAGE' not in caps


def test_master_status_depends_on_routing_flag():
    assert 'ORDERS.STATUS' not in capabilities_for('MASTER')
    assert 'ORDERS.STATUS' in capabilities_for('MASTER', master_can_edit_status=True)
    assert 'ACCOUNTS.MANAGE' in capabilities_for('MASTER')
    assert 'ORDERS.FORWARD' in capabilities_for('MASTER')


def test_client_is_read_own_only():
    assert capabilities_for('CLIENT') == frozenset({'ORDERS.READ_OWN'})
    assert capabilities_for('GUEST') == frozenset()


def test_row_visibility():
    client = _actor('CLIENT', 'c1')
    operator = _actor('OPERATOR', 'o1')
    own, other, orphan = _row('r1', 'c1'), _row('r2', 'c2'), _row('r3', '')
    assert can_view_row(client, own)
    assert not can_view_row(client, other)
    assert not can_view_row(client, orphan)
    assert [r.id for r in visible_rows(client, [own, other, orphan])] == ['r1']
    assert len(visible_rows(operator, [own, other, orphan])) == 3
    with pytest.raises(PermissionDenied):
        assert_can_view_row(client, other)


def test_client_with_empty_id_never_matches_orphans():
    ghost = ActorContext(user_id='', email='', role='CLIENT', capabilities=capabilities_for('CLIENT'))
    assert not can_view_row(ghost, _row('r3', ''))
