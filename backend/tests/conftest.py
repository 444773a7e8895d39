import os, sys, pytest
# Ensure backend directory is on path so 'orderboard' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from orderboard import create_app, get_db, get_toasts
from orderboard.models import Base, AuditLog, MailMessage, Order, PasswordReset, TableConfig, User
from orderboard.services.runtime import get_board, reset_board

TEST_CONFIG = {
    'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
    'JWT_SECRET_KEY': 'test-secret-key-with-enough-length-for-hs256',
    'NOTIFY_SYNC': True,
    'EMAILJS_SERVICE_ID': '',
    'EMAILJS_TEMPLATE_ID': '',
    'EMAILJS_PUBLIC_KEY': '',
    'SCHEMA_AUTO_MIGRATE': True,
    'MASTER_CAN_EDIT_STATUS': False,
    'SEED_DEMO_USERS_ON_LOGIN': False,
}


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
    app = create_app(TEST_CONFIG)
    # After app and blueprints are registered, ensure all tables exist
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app


@pytest.fixture(autouse=True)
def clean_state(app_instance):
    """Every test starts from an empty store and a fresh board."""
    with app_instance.app_context():
        reset_board()
        session = get_db()
        session.rollback()
        for model in (AuditLog, MailMessage, PasswordReset, Order, TableConfig, User):
            session.query(model).delete()
        session.commit()
        get_toasts().clear()
    yield


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def app_ctx(app_instance):
    with app_instance.app_context():
        yield app_instance


@pytest.fixture()
def board(app_ctx):
    return get_board()
