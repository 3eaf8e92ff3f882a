import pytest

from jobfeed.pipeline.storage import dispose_engine, get_session, init_engine


@pytest.fixture
def db(tmp_path):
    init_engine(f"sqlite:///{tmp_path / 'jobs.db'}")
    yield
    dispose_engine()


@pytest.fixture
def session(db):
    with get_session() as s:
        yield s
