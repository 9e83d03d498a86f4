"""
Interact with a GitHub repository used as a content store, through the contents and commits REST API.

Every object is addressed by its path in the repository and versioned by its blob sha. Updates and deletes
must supply the current sha of the path; GitHub rejects stale or missing shas, which we report as Conflict.
"""

import base64
import logging
from urllib.parse import quote

import httpx

from repostore.models import StoredObject, VersionRecord
from repostore.objectstorage.errors import Conflict, NotFound, TransportError

logger = logging.getLogger("repostore.transport")

API_VERSION = "2022-11-28"
JSON_MEDIA_TYPE = "application/vnd.github+json"
RAW_MEDIA_TYPE = "application/vnd.github.raw+json"

HISTORY_PAGE_SIZE = 50


class ContentTransport:
    """Remote content operations on a single repository and branch."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        owner: str,
        repo: str,
        token: str | None = None,
        branch: str = "main",
        api_url: str = "https://api.github.com",
        raw_url: str = "https://raw.githubusercontent.com",
    ):
        self.client = client
        self.owner = owner
        self.repo = repo
        self.token = token
        self.branch = branch
        self.api_url = api_url.rstrip("/")
        self.raw_url = raw_url.rstrip("/")

    @property
    def name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def __repr__(self):
        return f"<ContentTransport {self.name}@{self.branch}>"

    def _headers(self, accept: str = JSON_MEDIA_TYPE) -> dict[str, str]:
        headers = {"Accept": accept, "X-GitHub-Api-Version": API_VERSION}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _repo_url(self) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}"

    def _contents_url(self, path: str) -> str:
        return f"{self._repo_url()}/contents/{quote(path)}"

    async def _request(
        self,
        method: str,
        url: str,
        path: str,
        accept: str = JSON_MEDIA_TYPE,
        params: dict | None = None,
        json: dict | None = None,
    ) -> httpx.Response:
        try:
            res = await self.client.request(method, url, headers=self._headers(accept), params=params, json=json)
        except httpx.TimeoutException as e:
            # A timeout says nothing about whether the object exists, so it is never a NotFound
            raise TransportError(f"GitHub {method} {path} timed out: {e!r}")
        except httpx.HTTPError as e:
            raise TransportError(f"GitHub {method} {path} failed: {e!r}")

        if res.is_success:
            return res

        message = _error_message(res)
        if res.status_code == 404:
            raise NotFound(path, message)
        if res.status_code == 409 or (res.status_code == 422 and "sha" in message):
            raise Conflict(path, message)
        raise TransportError(f"GitHub {method} {path} failed: {message}", status=res.status_code)

    async def _get_contents(self, path: str) -> dict:
        res = await self._request("GET", self._contents_url(path), path, params={"ref": self.branch})
        data = res.json()
        if not isinstance(data, dict) or data.get("type", "file") != "file":
            raise TransportError(f"{path} in {self.name} is not a file", status=res.status_code)
        return data

    async def stat(self, path: str) -> StoredObject:
        """Return the current sha of path (without content), or raise NotFound"""
        data = await self._get_contents(path)
        return StoredObject(path=path, sha=data["sha"])

    async def get(self, path: str) -> StoredObject:
        """Return the current content and sha of path, or raise NotFound"""
        data = await self._get_contents(path)
        if data.get("encoding") == "base64" and data.get("content"):
            content = base64.b64decode(data["content"])
        else:
            # The contents API leaves out the content of files over 1MB
            content = await self.get_raw(path)
        return StoredObject(path=path, sha=data["sha"], content=content)

    async def get_raw(self, path: str, ref: str | None = None) -> bytes:
        """
        Return the raw bytes of path. If ref is given (a commit id), return the content as it was at that version.
        """
        res = await self._request(
            "GET", self._contents_url(path), path, accept=RAW_MEDIA_TYPE, params={"ref": ref or self.branch}
        )
        return res.content

    async def put(self, path: str, content: bytes, message: str, sha: str | None = None) -> str:
        """
        Write content to path and return the new sha.
        Without sha this is a create, which fails with Conflict if the path already exists.
        With sha this is an update, which fails with Conflict if sha is not the current version.
        """
        body = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.branch,
        }
        if sha:
            body["sha"] = sha
        res = await self._request("PUT", self._contents_url(path), path, json=body)
        new_sha = res.json()["content"]["sha"]
        logger.info(f"{'Updated' if sha else 'Created'} {self.name}:{path} ({len(content)} bytes, sha {new_sha[:7]})")
        return new_sha

    async def delete(self, path: str, sha: str, message: str) -> None:
        body = {"message": message, "sha": sha, "branch": self.branch}
        await self._request("DELETE", self._contents_url(path), path, json=body)
        logger.info(f"Deleted {self.name}:{path} (sha {sha[:7]})")

    async def history(self, path: str, limit: int = HISTORY_PAGE_SIZE) -> list[VersionRecord]:
        """The commits that touched path, newest first, at most limit"""
        params = {"path": path, "sha": self.branch, "per_page": limit}
        res = await self._request("GET", f"{self._repo_url()}/commits", path, params=params)
        records = [_version_record(commit, path) for commit in res.json()]
        records.sort(key=lambda r: r.timestamp, reverse=True)
        return records[:limit]

    async def ping(self) -> bool:
        try:
            await self._request("GET", self._repo_url(), self.name)
        except (NotFound, TransportError) as e:
            logger.warning(f"Cannot reach repository {self.name}: {e}")
            return False
        return True

    def public_url(self, path: str) -> str:
        return f"{self.raw_url}/{self.owner}/{self.repo}/{self.branch}/{quote(path)}"


def _version_record(commit: dict, path: str) -> VersionRecord:
    info = commit.get("commit") or {}
    author = info.get("author") or info.get("committer") or {}
    if not commit.get("sha") or not author.get("date"):
        raise TransportError(f"Unexpected commit in the history of {path}: {commit!r}")
    return VersionRecord(
        version_id=commit["sha"],
        message=info.get("message", ""),
        timestamp=author["date"],
        author=author.get("name"),
    )


def _error_message(res: httpx.Response) -> str:
    try:
        data = res.json()
    except ValueError:
        return res.text or res.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return res.text
