import os, sys, pytest
# Ensure the backend directory is on path so 'apihub' imports without installation
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from apihub import create_app, get_db
from apihub.models.authz import Base
# Import all model modules to ensure tables are registered before create_all
import apihub.models.audit  # noqa: F401
import apihub.models.project  # noqa: F401
import apihub.models.api_spec  # noqa: F401
import apihub.models.version  # noqa: F401

@pytest.fixture(scope='session', autouse=True)
def app_instance():
    app = create_app({'DATABASE_URL': 'sqlite+pysqlite:///:memory:', 'JWT_SECRET_KEY': 'test-secret-key-with-enough-length'})
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app

@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()

@pytest.fixture()
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance
