"""GitLab API client using httpx."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from .config import GitLabConfig
from .exceptions import (
    GitLabApiError,
    GitLabAuthError,
    GitLabConnectionError,
    GitLabNotFoundError,
)

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 100


class GitLabClient:
    """Async HTTP client for the GitLab REST API v4.

    One instance is shared by every tool invocation of a running server. It
    holds connection and auth configuration only, so concurrent use is safe.
    """

    def __init__(self, config: GitLabConfig | None = None) -> None:
        self.config = config or GitLabConfig.from_env()
        self.config.validate()
        self._client = httpx.AsyncClient(
            base_url=self.config.api_url,
            headers={
                "PRIVATE-TOKEN": self.config.token,
                "Content-Type": "application/json",
            },
            timeout=self.config.timeout,
            verify=self.config.ssl_verify,
        )

    async def close(self) -> None:
        await self._client.aclose()

    # ── HTTP helpers ──────────────────────────────────────────────

    @staticmethod
    def _encode_id(project_id: str | int) -> str:
        """Encode a project/group ID. Numeric IDs pass through; paths are URL-encoded."""
        if isinstance(project_id, int):
            return str(project_id)
        try:
            return str(int(project_id))
        except ValueError:
            return quote(project_id, safe="")

    @staticmethod
    def _encode_ref(value: str) -> str:
        return quote(value, safe="")

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any = None,
        params: dict[str, Any] | None = None,
        raw: bool = False,
    ) -> Any:
        """Make an API request and return parsed JSON (or raw text if raw=True)."""
        kwargs: dict[str, Any] = {"params": params}
        if json_data is not None:
            kwargs["json"] = json_data

        logger.debug("GitLab %s %s", method, path)
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            msg = f"Cannot reach GitLab at {self.config.url}: {e}"
            raise GitLabConnectionError(msg) from e

        if resp.status_code in (401, 403):
            raise GitLabAuthError(resp.status_code, resp.text)
        if resp.status_code == 404:
            raise GitLabNotFoundError(resp.text)
        if not resp.is_success:
            raise GitLabApiError(resp.status_code, resp.reason_phrase or "", resp.text)

        if resp.status_code == 204 or not resp.content:
            return None

        if raw:
            return resp.text

        content_type = resp.headers.get("content-type", "")
        if "text/html" in content_type:
            msg = "Unexpected HTML response, check URL and authentication"
            raise GitLabApiError(resp.status_code, msg, resp.text[:500])

        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise GitLabApiError(
                resp.status_code,
                f"JSON parse error: {e}",
                resp.text[:500],
            ) from e

    async def get(
        self, path: str, params: dict[str, Any] | None = None, *, raw: bool = False
    ) -> Any:
        return await self._request("GET", path, params=params, raw=raw)

    async def post(self, path: str, json_data: Any = None, **kwargs: Any) -> Any:
        return await self._request("POST", path, json_data=json_data, **kwargs)

    async def put(self, path: str, json_data: Any = None, **kwargs: Any) -> Any:
        return await self._request("PUT", path, json_data=json_data, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self._request("DELETE", path, **kwargs)

    # ── Paths ─────────────────────────────────────────────────────

    def _project(self, project_id: str | int, *parts: object) -> str:
        return "/".join([f"/projects/{self._encode_id(project_id)}", *map(str, parts)])

    def _group(self, group_id: str | int, *parts: object) -> str:
        return "/".join([f"/groups/{self._encode_id(group_id)}", *map(str, parts)])

    def _commit(self, project_id: str | int, sha: str, *parts: object) -> str:
        return self._project(project_id, "repository/commits", self._encode_ref(sha), *parts)

    def _mr(self, project_id: str | int, mr_iid: int, *parts: object) -> str:
        return self._project(project_id, "merge_requests", mr_iid, *parts)

    async def _list(self, path: str, params: dict[str, Any] | None = None) -> list[dict]:
        """GET a collection, one page of ``DEFAULT_PER_PAGE`` items unless overridden."""
        return await self.get(path, params={"per_page": DEFAULT_PER_PAGE, **(params or {})})

    # ── Projects, groups and users ────────────────────────────────

    async def get_project(self, project_id: str | int) -> dict:
        return await self.get(self._project(project_id))

    async def list_group_projects(
        self, group_id: str | int, params: dict[str, Any] | None = None
    ) -> list[dict]:
        return await self._list(self._group(group_id, "projects"), params)

    async def list_group_members(self, group_id: str | int) -> list[dict]:
        return await self._list(self._group(group_id, "members"))

    async def list_user_events(
        self, username: str, params: dict[str, Any] | None = None
    ) -> list[dict]:
        return await self._list(f"/users/{self._encode_ref(username)}/events", params)

    # ── Branches and tags ─────────────────────────────────────────

    async def list_branches(
        self, project_id: str | int, params: dict[str, Any] | None = None
    ) -> list[dict]:
        return await self._list(self._project(project_id, "repository/branches"), params)

    async def get_branch(self, project_id: str | int, branch: str) -> dict:
        ref = self._encode_ref(branch)
        return await self.get(self._project(project_id, "repository/branches", ref))

    async def create_branch(self, project_id: str | int, branch: str, ref: str) -> dict:
        path = self._project(project_id, "repository/branches")
        return await self.post(path, {"branch": branch, "ref": ref})

    async def delete_branch(self, project_id: str | int, branch: str) -> None:
        ref = self._encode_ref(branch)
        await self.delete(self._project(project_id, "repository/branches", ref))

    async def list_tags(
        self, project_id: str | int, params: dict[str, Any] | None = None
    ) -> list[dict]:
        return await self._list(self._project(project_id, "repository/tags"), params)

    # ── Commits ───────────────────────────────────────────────────

    async def list_commits(
        self, project_id: str | int, params: dict[str, Any] | None = None
    ) -> list[dict]:
        return await self._list(self._project(project_id, "repository/commits"), params)

    async def get_commit(self, project_id: str | int, sha: str) -> dict:
        return await self.get(self._commit(project_id, sha))

    async def get_commit_diff(self, project_id: str | int, sha: str) -> list[dict]:
        return await self._list(self._commit(project_id, sha, "diff"))

    async def list_commit_comments(self, project_id: str | int, sha: str) -> list[dict]:
        return await self._list(self._commit(project_id, sha, "comments"))

    async def post_commit_comment(
        self, project_id: str | int, sha: str, params: dict[str, Any]
    ) -> dict:
        return await self.post(self._commit(project_id, sha, "comments"), params)

    async def list_commit_merge_requests(self, project_id: str | int, sha: str) -> list[dict]:
        return await self._list(self._commit(project_id, sha, "merge_requests"))

    async def get_commit_refs(
        self, project_id: str | int, sha: str, ref_type: str = "all"
    ) -> list[dict]:
        return await self._list(self._commit(project_id, sha, "refs"), {"type": ref_type})

    async def cherry_pick_commit(
        self, project_id: str | int, sha: str, params: dict[str, Any]
    ) -> dict:
        return await self.post(self._commit(project_id, sha, "cherry_pick"), params)

    async def revert_commit(self, project_id: str | int, sha: str, branch: str) -> dict:
        return await self.post(self._commit(project_id, sha, "revert"), {"branch": branch})

    # ── Repository files ──────────────────────────────────────────

    async def get_raw_file(self, project_id: str | int, file_path: str, ref: str) -> str:
        path = self._project(project_id, "repository/files", self._encode_ref(file_path), "raw")
        return await self.get(path, params={"ref": ref}, raw=True)

    # ── Merge requests ────────────────────────────────────────────

    async def list_merge_requests(
        self, project_id: str | int, params: dict[str, Any] | None = None
    ) -> list[dict]:
        return await self._list(self._project(project_id, "merge_requests"), params)

    async def get_merge_request(self, project_id: str | int, mr_iid: int) -> dict:
        return await self.get(self._mr(project_id, mr_iid))

    async def list_merge_request_diffs(self, project_id: str | int, mr_iid: int) -> list[dict]:
        return await self._list(self._mr(project_id, mr_iid, "diffs"))

    async def create_merge_request(self, project_id: str | int, params: dict[str, Any]) -> dict:
        return await self.post(self._project(project_id, "merge_requests"), params)

    async def update_merge_request(
        self, project_id: str | int, mr_iid: int, params: dict[str, Any]
    ) -> dict:
        return await self.put(self._mr(project_id, mr_iid), params)

    async def merge_merge_request(
        self, project_id: str | int, mr_iid: int, params: dict[str, Any] | None = None
    ) -> dict:
        return await self.put(self._mr(project_id, mr_iid, "merge"), params or {})

    async def rebase_merge_request(
        self, project_id: str | int, mr_iid: int, skip_ci: bool = False
    ) -> dict:
        return await self.put(self._mr(project_id, mr_iid, "rebase"), {"skip_ci": skip_ci})

    async def get_merge_request_changes(
        self, project_id: str | int, mr_iid: int, params: dict[str, Any] | None = None
    ) -> dict:
        return await self.get(self._mr(project_id, mr_iid, "changes"), params=params)

    async def list_mr_notes(
        self, project_id: str | int, mr_iid: int, params: dict[str, Any] | None = None
    ) -> list[dict]:
        return await self._list(self._mr(project_id, mr_iid, "notes"), params)

    async def add_mr_note(self, project_id: str | int, mr_iid: int, body: str) -> dict:
        return await self.post(self._mr(project_id, mr_iid, "notes"), {"body": body})

    async def list_mr_pipelines(self, project_id: str | int, mr_iid: int) -> list[dict]:
        return await self._list(self._mr(project_id, mr_iid, "pipelines"))

    async def create_mr_pipeline(self, project_id: str | int, mr_iid: int) -> dict:
        return await self.post(self._mr(project_id, mr_iid, "pipelines"))

    async def list_mr_commits(self, project_id: str | int, mr_iid: int) -> list[dict]:
        return await self._list(self._mr(project_id, mr_iid, "commits"))

    # ── Pipelines and jobs ────────────────────────────────────────

    async def list_pipelines(
        self, project_id: str | int, params: dict[str, Any] | None = None
    ) -> list[dict]:
        return await self._list(self._project(project_id, "pipelines"), params)

    async def get_pipeline(self, project_id: str | int, pipeline_id: int) -> dict:
        return await self.get(self._project(project_id, "pipelines", pipeline_id))

    async def create_pipeline(
        self,
        project_id: str | int,
        ref: str,
        variables: list[dict[str, str]] | None = None,
    ) -> dict:
        body: dict[str, Any] = {"ref": ref}
        if variables:
            body["variables"] = variables
        return await self.post(self._project(project_id, "pipeline"), body)

    async def list_pipeline_jobs(
        self, project_id: str | int, pipeline_id: int, params: dict[str, Any] | None = None
    ) -> list[dict]:
        return await self._list(self._project(project_id, "pipelines", pipeline_id, "jobs"), params)

    async def list_project_jobs(
        self, project_id: str | int, params: dict[str, Any] | None = None
    ) -> list[dict]:
        return await self._list(self._project(project_id, "jobs"), params)

    async def get_job(self, project_id: str | int, job_id: int) -> dict:
        return await self.get(self._project(project_id, "jobs", job_id))

    async def retry_job(self, project_id: str | int, job_id: int) -> dict:
        return await self.post(self._project(project_id, "jobs", job_id, "retry"))

    async def cancel_job(self, project_id: str | int, job_id: int) -> dict:
        return await self.post(self._project(project_id, "jobs", job_id, "cancel"))

    async def get_job_log(self, project_id: str | int, job_id: int) -> str:
        return await self.get(self._project(project_id, "jobs", job_id, "trace"), raw=True)

    # ── Deploy tokens ─────────────────────────────────────────────

    def _deploy_tokens(self, scope_type: str, target: str | int, *parts: object) -> str:
        owner = self._project if scope_type == "project" else self._group
        return owner(target, "deploy_tokens", *parts)

    async def list_all_deploy_tokens(self) -> list[dict]:
        return await self._list("/deploy_tokens")

    async def list_deploy_tokens(self, scope_type: str, target: str | int) -> list[dict]:
        return await self._list(self._deploy_tokens(scope_type, target))

    async def get_deploy_token(self, scope_type: str, target: str | int, token_id: int) -> dict:
        return await self.get(self._deploy_tokens(scope_type, target, token_id))

    async def create_deploy_token(
        self, scope_type: str, target: str | int, params: dict[str, Any]
    ) -> dict:
        return await self.post(self._deploy_tokens(scope_type, target), params)

    async def delete_deploy_token(self, scope_type: str, target: str | int, token_id: int) -> None:
        await self.delete(self._deploy_tokens(scope_type, target, token_id))

    # ── Group variables ───────────────────────────────────────────

    async def list_group_variables(self, group_id: str | int) -> list[dict]:
        return await self._list(self._group(group_id, "variables"))

    async def get_group_variable(self, group_id: str | int, key: str) -> dict:
        return await self.get(self._group(group_id, "variables", self._encode_ref(key)))

    async def create_group_variable(self, group_id: str | int, params: dict[str, Any]) -> dict:
        return await self.post(self._group(group_id, "variables"), params)

    async def update_group_variable(
        self, group_id: str | int, key: str, params: dict[str, Any]
    ) -> dict:
        return await self.put(self._group(group_id, "variables", self._encode_ref(key)), params)

    async def delete_group_variable(self, group_id: str | int, key: str) -> None:
        await self.delete(self._group(group_id, "variables", self._encode_ref(key)))

    # ── Search ────────────────────────────────────────────────────

    async def search(
        self,
        scope: str,
        query: str,
        *,
        group_id: str | int | None = None,
        project_id: str | int | None = None,
        ref: str | None = None,
    ) -> list[dict]:
        """Run a global, group or project search depending on which target is given."""
        if project_id is not None:
            path = self._project(project_id, "search")
        elif group_id is not None:
            path = self._group(group_id, "search")
        else:
            path = "/search"
        params: dict[str, Any] = {"scope": scope, "search": query}
        if ref:
            params["ref"] = ref
        return await self._list(path, params)
