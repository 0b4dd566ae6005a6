import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.routers.frontend_router import build_router, find_static_file


@pytest.fixture()
def frontend_dir(tmp_path):
    root = tmp_path / "web"
    (root / "public").mkdir(parents=True)
    (root / "js").mkdir()
    (root / "css").mkdir()
    (root / "public" / "index.html").write_text("<html>shell</html>", encoding="utf-8")
    (root / "js" / "app.mjs").write_text("export const x = 1;", encoding="utf-8")
    (root / "css" / "site.css").write_text("body {}", encoding="utf-8")
    (tmp_path / "secret.txt").write_text("nope", encoding="utf-8")
    return root


@pytest.fixture()
def shell_client(frontend_dir):
    app = FastAPI()
    app.include_router(build_router(frontend_dir))
    return TestClient(app)


def test_modules_are_served_as_javascript(shell_client):
    r = shell_client.get("/app.mjs")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/javascript")
    assert r.text == "export const x = 1;"


def test_static_files_from_known_directories(shell_client):
    r = shell_client.get("/site.css")
    assert r.status_code == 200
    assert r.text == "body {}"


def test_unknown_paths_get_the_shell(shell_client):
    for path in ("/", "/okr/edit/3"):
        r = shell_client.get(path)
        assert r.status_code == 200
        assert r.text == "<html>shell</html>"


def test_api_paths_are_not_swallowed(shell_client):
    assert shell_client.get("/api/okr/a/b/c").status_code == 404


def test_paths_cannot_escape_the_root(frontend_dir):
    assert find_static_file(frontend_dir.resolve(), "../secret.txt") is None
    assert find_static_file(frontend_dir.resolve(), "app.mjs").name == "app.mjs"
