import base64
import json

import httpx
import pytest
from pytest_httpx import HTTPXMock

from repostore.objectstorage.errors import Conflict, NotFound, TransportError
from tests.conftest import TEST_API_URL

CONTENTS = f"{TEST_API_URL}/repos/club/storage/contents"


def contents_url(path: str, ref: str = "main") -> str:
    return str(httpx.URL(f"{CONTENTS}/{path}", params={"ref": ref}))


def file_json(path: str, sha: str, content: bytes | None = None) -> dict:
    data = {"type": "file", "path": path, "sha": sha, "size": len(content or b"")}
    if content is not None:
        data.update(encoding="base64", content=base64.encodebytes(content).decode("ascii"))
    else:
        data.update(encoding="none", content="")
    return data


def commit_json(sha: str, date: str, message: str = "Update", name: str = "Bot") -> dict:
    return {"sha": sha, "commit": {"message": message, "author": {"name": name, "date": date}}}


@pytest.mark.anyio
async def test_get(github, httpx_mock: HTTPXMock):
    path = "projects/1/report.pdf"
    httpx_mock.add_response(url=contents_url(path), method="GET", json=file_json(path, "abc123", b"%PDF-1.4 bytes"))

    obj = await github.get(path)
    assert obj.path == path
    assert obj.sha == "abc123"
    assert obj.content == b"%PDF-1.4 bytes"

    request = httpx_mock.get_request()
    assert request.headers["Authorization"] == "Bearer secret"
    assert request.headers["Accept"] == "application/vnd.github+json"
    assert request.headers["X-GitHub-Api-Version"] == "2022-11-28"


@pytest.mark.anyio
async def test_get_large_file_falls_back_to_raw(github, httpx_mock: HTTPXMock):
    path = "projects/1/big.bin"
    httpx_mock.add_response(
        url=contents_url(path), method="GET", match_headers={"Accept": "application/vnd.github+json"}, json=file_json(path, "big1")
    )
    httpx_mock.add_response(
        url=contents_url(path),
        method="GET",
        match_headers={"Accept": "application/vnd.github.raw+json"},
        content=b"x" * 2048,
    )
    obj = await github.get(path)
    assert obj.sha == "big1"
    assert obj.content == b"x" * 2048


@pytest.mark.anyio
async def test_stat_not_found(github, httpx_mock: HTTPXMock):
    path = "members/1/profile-photo.jpg"
    httpx_mock.add_response(url=contents_url(path), method="GET", status_code=404, json={"message": "Not Found"})
    with pytest.raises(NotFound) as e:
        await github.stat(path)
    assert e.value.status == 404
    assert e.value.path == path


@pytest.mark.anyio
async def test_get_raw_at_version(github, httpx_mock: HTTPXMock):
    path = "projects/1/notes.txt"
    httpx_mock.add_response(url=contents_url(path, ref="c0ffee"), method="GET", content=b"old notes")
    assert await github.get_raw(path, ref="c0ffee") == b"old notes"
    assert httpx_mock.get_request().headers["Accept"] == "application/vnd.github.raw+json"


@pytest.mark.anyio
async def test_put_create_and_update(github, httpx_mock: HTTPXMock):
    path = "projects/1/notes.txt"
    url = f"{CONTENTS}/{path}"
    httpx_mock.add_response(url=url, method="PUT", status_code=201, json={"content": {"path": path, "sha": "sha1"}})
    httpx_mock.add_response(url=url, method="PUT", status_code=200, json={"content": {"path": path, "sha": "sha2"}})

    assert await github.put(path, b"first", "Upload notes.txt") == "sha1"
    assert await github.put(path, b"second", "Update notes.txt", sha="sha1") == "sha2"

    create, update = [json.loads(r.content) for r in httpx_mock.get_requests()]
    assert create == {"message": "Upload notes.txt", "content": base64.b64encode(b"first").decode(), "branch": "main"}
    assert "sha" not in create
    assert update["sha"] == "sha1"
    assert base64.b64decode(update["content"]) == b"second"


@pytest.mark.anyio
@pytest.mark.parametrize(
    "status,message",
    [
        (409, "notes.txt does not match sha1"),
        (422, 'Invalid request.\n\n"sha" wasn\'t supplied.'),
    ],
)
async def test_put_conflict(github, httpx_mock: HTTPXMock, status, message):
    path = "projects/1/notes.txt"
    httpx_mock.add_response(url=f"{CONTENTS}/{path}", method="PUT", status_code=status, json={"message": message})
    with pytest.raises(Conflict) as e:
        await github.put(path, b"content", "Update notes.txt", sha="sha1")
    assert e.value.retryable
    assert e.value.status == 409


@pytest.mark.anyio
async def test_put_other_errors(github, httpx_mock: HTTPXMock):
    path = "projects/1/notes.txt"
    httpx_mock.add_response(url=f"{CONTENTS}/{path}", method="PUT", status_code=403, json={"message": "rate limit exceeded"})
    httpx_mock.add_response(url=f"{CONTENTS}/{path}", method="PUT", status_code=422, json={"message": "path is invalid"})

    with pytest.raises(TransportError) as e:
        await github.put(path, b"content", "Upload notes.txt")
    assert e.value.status == 403
    assert "rate limit exceeded" in e.value.message

    with pytest.raises(TransportError) as e:
        await github.put(path, b"content", "Upload notes.txt")
    assert e.value.status == 422


@pytest.mark.anyio
async def test_timeout_is_transport_error(github, httpx_mock: HTTPXMock):
    path = "members/1/profile-photo.jpg"
    httpx_mock.add_exception(httpx.ReadTimeout("Read timed out"), url=contents_url(path))
    with pytest.raises(TransportError) as e:
        await github.stat(path)
    assert not isinstance(e.value, NotFound)
    assert e.value.status is None
    assert "timed out" in str(e.value)


@pytest.mark.anyio
async def test_delete(github, httpx_mock: HTTPXMock):
    path = "members/1/profile-photo.png"
    httpx_mock.add_response(url=f"{CONTENTS}/{path}", method="DELETE", json={"content": None, "commit": {}})
    await github.delete(path, "sha9", "Delete profile photo for member 1")
    body = json.loads(httpx_mock.get_request().content)
    assert body == {"message": "Delete profile photo for member 1", "sha": "sha9", "branch": "main"}


@pytest.mark.anyio
async def test_history(github, httpx_mock: HTTPXMock):
    path = "projects/1/notes.txt"
    url = httpx.URL(f"{TEST_API_URL}/repos/club/storage/commits", params={"path": path, "sha": "main", "per_page": 50})
    commits = [
        commit_json("c2", "2024-03-02T10:00:00Z", "Update notes.txt", "Alice"),
        commit_json("c3", "2024-03-03T10:00:00Z", "Update notes.txt", "Bob"),
        commit_json("c1", "2024-03-01T10:00:00Z", "Upload notes.txt", "Alice"),
    ]
    httpx_mock.add_response(url=str(url), method="GET", json=commits)

    history = await github.history(path)
    assert [r.version_id for r in history] == ["c3", "c2", "c1"]
    assert history[0].author == "Bob"
    assert history[-1].message == "Upload notes.txt"
    assert history[0].timestamp.year == 2024


@pytest.mark.anyio
async def test_history_is_capped(github, httpx_mock: HTTPXMock):
    path = "projects/1/notes.txt"
    url = httpx.URL(f"{TEST_API_URL}/repos/club/storage/commits", params={"path": path, "sha": "main", "per_page": 5})
    commits = [commit_json(f"c{i}", f"2024-03-{i + 1:02d}T10:00:00Z") for i in range(8)]
    httpx_mock.add_response(url=str(url), method="GET", json=commits)
    history = await github.history(path, limit=5)
    assert [r.version_id for r in history] == ["c7", "c6", "c5", "c4", "c3"]


@pytest.mark.anyio
async def test_ping(github, httpx_mock: HTTPXMock):
    httpx_mock.add_response(url=f"{TEST_API_URL}/repos/club/storage", method="GET", json={"full_name": "club/storage"})
    httpx_mock.add_response(url=f"{TEST_API_URL}/repos/club/storage", method="GET", status_code=404, json={"message": "Not Found"})
    assert await github.ping() is True
    assert await github.ping() is False


@pytest.mark.anyio
async def test_public_url(github):
    assert github.public_url("members/3/profile-photo.jpg") == (
        "https://raw.github.test/club/storage/main/members/3/profile-photo.jpg"
    )


@pytest.mark.anyio
async def test_history_with_undated_commit(github, httpx_mock: HTTPXMock):
    path = "projects/1/notes.txt"
    url = httpx.URL(f"{TEST_API_URL}/repos/club/storage/commits", params={"path": path, "sha": "main", "per_page": 50})
    commits = [commit_json("c1", "2024-03-01T10:00:00Z"), {"sha": "c2", "commit": {"message": "Update", "author": {}}}]
    httpx_mock.add_response(url=str(url), method="GET", json=commits)
    with pytest.raises(TransportError) as e:
        await github.history(path)
    assert path in str(e.value)
