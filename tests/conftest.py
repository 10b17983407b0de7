import pytest

import config
from db import dispose_db, get_session
from main import create_app
from services.scope import Scope

from factories import ALL_FACTORIES, SchoolFactory, AdminProfileFactory, SchoolProfileFactory


@pytest.fixture
def app(tmp_path, monkeypatch):
    """App bound to a throwaway SQLite file and photo directory."""
    monkeypatch.setattr(config, "PHOTOS_DIR", tmp_path / "photos")
    application = create_app(f"sqlite:///{tmp_path / 'test.sqlite'}")
    application.config["TESTING"] = True
    yield application
    dispose_db()


@pytest.fixture
def session(app):
    s = get_session()
    for f in ALL_FACTORIES:
        f._meta.sqlalchemy_session = s
    yield s
    s.close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def school(session):
    return SchoolFactory()


@pytest.fixture
def other_school(session):
    return SchoolFactory()


@pytest.fixture
def admin_profile(session):
    return AdminProfileFactory()


@pytest.fixture
def school_profile(session, school):
    return SchoolProfileFactory(school=school)


@pytest.fixture
def admin_scope(admin_profile):
    return Scope.admin(admin_profile.user_id)


@pytest.fixture
def school_scope(school_profile):
    return Scope.for_school(school_profile.school_id, school_profile.user_id)


@pytest.fixture
def as_admin(admin_profile):
    """Request headers identifying the admin."""
    return {config.USER_HEADER: admin_profile.user_id}


@pytest.fixture
def as_school(school_profile):
    """Request headers identifying the school user."""
    return {config.USER_HEADER: school_profile.user_id}
