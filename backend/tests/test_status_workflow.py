import pytest
import requests
from orderboard import get_db
from orderboard.errors import PermissionDenied, ValidationError
from orderboard.models import MailMessage, Order
from orderboard.services.context import ActorContext
from orderboard.services.notifications import EmailJSNotifier, build_status_payload
from orderboard.services.status_workflow import ORDER_STATUS_FSM, StatusWorkflow, acknowledgment_message
from orderboard.services.toasts import ToastBoard
from tests.test_utils_seed import order_values, seed_actors


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class RecordingNotifier:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    def send_status_notification(self, email, status, order_id=None):
        self.calls.append((email, status, order_id))
        if self.fail:
            raise RuntimeError('mail provider down')
        return build_status_payload(email, status, order_id)


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code} error')


def _workflow(board, notifier=None, clock=None):
    toasts = ToastBoard(ttl=3.5, clock=clock or FakeClock())
    return StatusWorkflow(board.table, notifier or RecordingNotifier(), toasts), toasts


def test_fsm_is_complete_graph():
    for current in ('PENDENTE', 'EM_ANALISE', 'APROVADO', 'REJEITADO'):
        assert ORDER_STATUS_FSM.targets(current) == {'PENDENTE', 'EM_ANALISE', 'APROVADO', 'REJEITADO'} - {current}


def test_operator_approves_order(board):
    actors = seed_actors()
    operator = actors['operator'][1]
    row = board.table.create_row(operator, order_values('client@demo.com'))
    notifier = RecordingNotifier()
    workflow, toasts = _workflow(board, notifier)
    change = workflow.change_status(operator, row.id, 'APROVADO')
    assert change.changed
    assert change.previous_status == 'PENDENTE'
    assert change.row.status == 'APROVADO'
    assert board.table.get_row(row.id).status == 'APROVADO'
    assert notifier.calls == [('client@demo.com', 'APROVADO', row.id)]
    assert change.payload == {
        'to_email': 'client@demo.com', 'status': 'APROVADO', 'status_label': 'Aprovado', 'order_id': row.id,
    }
    assert change.toast.message == 'Notificação de e-mail para client@demo.com: status atualizado para APROVADO.'
    assert [t.message for t in toasts.active(operator.user_id)] == [change.toast.message]


def test_status_change_queues_templated_mail(board):
    actors = seed_actors()
    operator = actors['operator'][1]
    row = board.table.create_row(operator, order_values('client@demo.com'))
    assert get_db().query(MailMessage).count() == 0
    workflow, _ = _workflow(board)
    workflow.change_status(operator, row.id, 'EM_ANALISE')
    mail = get_db().query(MailMessage).one()
    assert mail.to == 'client@demo.com'
    assert mail.subject == 'Atualização do seu pedido – Status: Em análise'
    assert 'Novo status: Em análise' in mail.html
    assert row.id in mail.html
    assert mail.order_id == row.id


def test_mail_trigger_ignores_non_status_writes(board):
    actors = seed_actors()
    operator = actors['operator'][1]
    row = board.table.create_row(operator, order_values('client@demo.com'))
    board.table.write_cell(operator, row.id, 1, 'N-77')
    session = get_db()
    order = session.get(Order, row.id, populate_existing=True)
    order.status = order.status
    session.commit()
    assert session.query(MailMessage).count() == 0


def test_mail_trigger_fires_on_direct_store_write(app_ctx):
    session = get_db()
    order = Order(owner_email='Alguem@Demo.com', columns=['alguem@demo.com'], status='PENDENTE', attachments=[])
    session.add(order); session.commit()
    order.status = 'REJEITADO'
    session.commit()
    mail = session.query(MailMessage).one()
    assert mail.to == 'alguem@demo.com'
    assert 'Rejeitado' in mail.subject


def test_mail_template_escapes_order_reference(app_ctx):
    from orderboard.services.mail_trigger import build_status_email
    mail = build_status_email('a@b.com', 'APROVADO', '<script>')
    assert '<script>' not in mail.html
    assert '&lt;script&gt;' in mail.html


def test_same_status_is_a_noop(board):
    actors = seed_actors()
    operator = actors['operator'][1]
    row = board.table.create_row(operator, order_values('client@demo.com'))
    notifier = RecordingNotifier()
    workflow, toasts = _workflow(board, notifier)
    change = workflow.change_status(operator, row.id, 'PENDENTE')
    assert not change.changed
    assert change.payload is None and change.toast is None
    assert notifier.calls == []
    assert toasts.active(operator.user_id) == []
    assert get_db().query(MailMessage).count() == 0


def test_invalid_status_and_capabilities(board):
    actors = seed_actors()
    master_user, master = actors['master']
    row = board.table.create_row(actors['operator'][1], order_values('client@demo.com'))
    workflow, _ = _workflow(board)
    with pytest.raises(ValidationError):
        workflow.change_status(actors['operator'][1], row.id, 'CANCELADO')
    with pytest.raises(PermissionDenied):
        workflow.change_status(master, row.id, 'APROVADO')
    with pytest.raises(PermissionDenied):
        workflow.change_status(actors['client'][1], row.id, 'APROVADO')
    routed = ActorContext.for_user(master_user, master_can_edit_status=True)
    assert workflow.change_status(routed, row.id, 'APROVADO').row.status == 'APROVADO'


def test_notification_failure_does_not_revert(board):
    actors = seed_actors()
    operator = actors['operator'][1]
    row = board.table.create_row(operator, order_values('client@demo.com'))
    workflow, _ = _workflow(board, RecordingNotifier(fail=True))
    change = workflow.change_status(operator, row.id, 'REJEITADO')
    assert change.payload is None
    assert get_db().get(Order, row.id, populate_existing=True).status == 'REJEITADO'
    assert board.table.get_row(row.id).status == 'REJEITADO'


def test_toast_expires_after_ttl():
    clock = FakeClock(10.0)
    toasts = ToastBoard(ttl=3.5, clock=clock)
    toasts.push('u1', acknowledgment_message('client@demo.com', 'APROVADO'))
    clock.now = 13.4
    assert len(toasts.active('u1')) == 1
    assert toasts.active('u2') == []
    clock.now = 13.5
    assert toasts.active('u1') == []



def test_toasts_of_users_who_never_poll_stay_bounded():
    clock = FakeClock(0.0)
    toasts = ToastBoard(ttl=3.5, clock=clock)
    for i in range(1000):
        clock.now = float(i)
        toasts.push('idle', acknowledgment_message('client@demo.com', 'APROVADO'))
    # pushed at 996, 997, 998 and 999 are still live at t=999
    assert toasts.retained('idle') == 4
    clock.now = 2000.0
    toasts.push('other', 'ok')
    assert toasts.retained('idle') == 0
    assert toasts.retained('other') == 1

def test_emailjs_without_credentials_is_noop(monkeypatch):
    def boom(*a, **k):
        raise AssertionError('no request expected')
    monkeypatch.setattr(requests, 'post', boom)
    notifier = EmailJSNotifier(service_id='svc', template_id='', public_key='pk', sync=True)
    assert not notifier.configured
    assert notifier.send_status_notification('client@demo.com', 'APROVADO', 'o1') is None


def test_emailjs_posts_template_params(monkeypatch):
    sent = []

    def fake_post(url, json=None, timeout=None):
        sent.append((url, json, timeout))
        return FakeResponse()
    monkeypatch.setattr(requests, 'post', fake_post)
    notifier = EmailJSNotifier.from_config({
        'EMAILJS_SERVICE_ID': 'svc', 'EMAILJS_TEMPLATE_ID': 'tpl', 'EMAILJS_PUBLIC_KEY': 'pk',
        'EMAILJS_TIMEOUT': 5, 'NOTIFY_SYNC': True,
    })
    payload = notifier.send_status_notification('Client@Demo.com', 'APROVADO', 'o1')
    assert payload['status_label'] == 'Aprovado'
    url, body, timeout = sent[0]
    assert url == 'https://api.emailjs.com/api/v1.0/email/send'
    assert timeout == 5.0
    assert body['service_id'] == 'svc' and body['template_id'] == 'tpl' and body['user_id'] == 'pk'
    assert body['template_params'] == {
        'to_email': 'client@demo.com', 'status': 'APROVADO', 'status_label': 'Aprovado', 'order_id': 'o1',
    }


def test_emailjs_failure_is_swallowed(monkeypatch):
    def failing_post(url, json=None, timeout=None):
        raise requests.ConnectionError('offline')
    monkeypatch.setattr(requests, 'post', failing_post)
    notifier = EmailJSNotifier(service_id='svc', template_id='tpl', public_key='pk', sync=True)
    assert notifier.send_status_notification('client@demo.com', 'REJEITADO', 'o1') is not None
    assert notifier._post({'template_params': {'to_email': 'x@y.z'}}) is False


def test_emailjs_http_error_is_swallowed(monkeypatch):
    monkeypatch.setattr(requests, 'post', lambda url, json=None, timeout=None: FakeResponse(500))
    notifier = EmailJSNotifier(service_id='svc', template_id='tpl', public_key='pk', sync=True)
    assert notifier._post({'template_params': {'to_email': 'x@y.z'}}) is False
