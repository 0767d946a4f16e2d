import pytest

from app.qms import create_app
from app.qms.models import Base
from app.qms.modules.processes.service import create_process, get_process_by_id
from app.qms.repository import get_repository


def _env(monkeypatch, db_path):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("RECORD_STORE", "sql")
    monkeypatch.delenv("HYDRATE_ON_START", raising=False)


@pytest.fixture()
def app(tmp_path, monkeypatch):
    _env(monkeypatch, tmp_path / "test.db")
    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)
    return app


def test_health_ok(app):
    client = app.test_client()
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True
    assert client.get("/healthz").data == b"ok"


def test_repository_requires_app_context(app):
    with pytest.raises(RuntimeError):
        get_repository()
    with app.app_context():
        assert get_repository() is app.extensions["qms_repository"]


def test_sql_write_through_and_hydrate(app, tmp_path, monkeypatch):
    with app.app_context():
        process = create_process(get_repository(), {"name": "Production", "type": "operational"})
        n_instances = len(get_repository().function_instances)

    # a second app on the same database loads the session state back
    _env(monkeypatch, tmp_path / "test.db")
    second = create_app()
    with second.app_context():
        repo = get_repository()
        assert get_process_by_id(repo, process.id) == process
        assert len(repo.function_instances) == n_instances


def test_production_guardrails(tmp_path, monkeypatch):
    _env(monkeypatch, tmp_path / "prod.db")
    monkeypatch.setenv("ENV", "production")
    with pytest.raises(RuntimeError):
        create_app()
