import pytest

from app import create_app
from config import TestingConfig
from extensions import db


class SQLiteTestingConfig(TestingConfig):
    SQLALCHEMY_DATABASE_URI = 'sqlite://'


@pytest.fixture(params=['memory', 'database'])
def app(request):
    config = SQLiteTestingConfig if request.param == 'database' else TestingConfig
    app = create_app(config)
    with app.app_context():
        if request.param == 'database':
            db.create_all()
        yield app
        if request.param == 'database':
            db.session.remove()
            db.drop_all()


@pytest.fixture
def storage(app):
    return app.extensions['storage']


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def space(storage):
    return storage.create_parking_space({"space_number": "A-01", "area": "A", "status": "AVAILABLE"})


@pytest.fixture
def household(storage):
    return storage.create_household({"household_number": "1201", "contact_name": "Wang",
                                     "contact_phone": "0912-345-678"})
