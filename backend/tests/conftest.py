import os, sys, pytest
# Ensure backend directory is on path so 'app' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from flask_jwt_extended import create_access_token
import app as app_pkg
from app import create_app
from app.models.authz import Base
# Import all model modules to ensure tables are registered before create_all
import app.models.category  # noqa: F401
import app.models.product  # noqa: F401
import app.models.audit  # noqa: F401


@pytest.fixture(scope='session')
def app_instance():
    app = create_app({
        'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
        'JWT_SECRET_KEY': 'test-secret-key-with-enough-length-for-hs256',
        'PROTECTED_USER_IDS': '1',
        'PROTECTED_ROLE_NAMES': 'Admin',
        'TESTING': True,
    })
    yield app


@pytest.fixture(autouse=True)
def fresh_db(app_instance):
    """Recreate every table per test so id-based guards (admin id 1) are deterministic."""
    app_pkg.SessionLocal.remove()
    Base.metadata.drop_all(app_pkg.db_engine)
    Base.metadata.create_all(app_pkg.db_engine)
    yield
    app_pkg.SessionLocal.remove()


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def session(app_instance):
    return app_pkg.get_db()


@pytest.fixture()
def headers_for(app_instance):
    """Bearer headers for a user; permissions are resolved server-side from roles."""
    def _make(user):
        with app_instance.app_context():
            token = create_access_token(identity=str(user.id))
        return {'Authorization': f'Bearer {token}'}
    return _make
