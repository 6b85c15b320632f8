"""Unit tests for the GitLab API client."""

import base64

import httpx
import pytest

from forgelink.models.commit import CommitAction, CommitFile
from forgelink.models.context import EntityType
from forgelink.models.credential import Credential, TokenSource
from forgelink.platforms.errors import NotFoundError, TransientApiError
from forgelink.platforms.gitlab.client import GitLabApiClient

BASE_URL = "https://gitlab.example.com/api/v4"
PROJECT = "/api/v4/projects/123"


def branch_json(name, commit_id, protected=False):
    return {"name": name, "commit": {"id": commit_id, "message": "init"}, "protected": protected}


@pytest.fixture
def client(transport, retrier):
    return GitLabApiClient("glpat-test", 123, base_url=BASE_URL, retrier=retrier, transport=transport)


class TestGitLabApiClient:
    """Test suite for GitLabApiClient."""

    @pytest.mark.asyncio
    async def test_get_merge_request(self, client, handler):
        handler.routes[("GET", f"{PROJECT}/merge_requests/7")] = httpx.Response(200, json={
            "id": 1001, "iid": 7, "title": "Add feature @claude", "description": None,
            "state": "opened", "source_branch": "feature", "target_branch": "main",
            "project_id": 123, "labels": ["bot"],
        })

        mr = await client.get_merge_request(7)

        assert mr.iid == 7
        assert mr.title == "Add feature @claude"
        assert mr.target_branch == "main"
        assert mr.model_extra["labels"] == ["bot"]
        assert handler.requests[0].headers["PRIVATE-TOKEN"] == "glpat-test"

    @pytest.mark.asyncio
    async def test_job_token_credential_uses_job_token_header(self, transport, retrier, handler):
        handler.routes[("GET", PROJECT)] = httpx.Response(200, json={"id": 123, "name": "demo"})
        credential = Credential(token="job", source=TokenSource.JOB_TOKEN, variable="CI_JOB_TOKEN")
        client = GitLabApiClient(credential, 123, base_url=BASE_URL, retrier=retrier, transport=transport)

        await client.get_project()

        assert handler.requests[0].headers["JOB-TOKEN"] == "job"

    @pytest.mark.asyncio
    async def test_create_comment_on_issue(self, client, handler):
        handler.routes[("POST", f"{PROJECT}/issues/4/notes")] = httpx.Response(
            201, json={"id": 55, "body": "hello"}
        )

        note = await client.create_comment(4, "hello", EntityType.ISSUE)

        assert note.id == 55
        assert handler.body(handler.requests[0]) == {"body": "hello"}

    @pytest.mark.asyncio
    async def test_update_comment_on_merge_request(self, client, handler):
        handler.routes[("PUT", f"{PROJECT}/merge_requests/7/notes/55")] = httpx.Response(
            200, json={"id": 55, "body": "updated"}
        )

        note = await client.update_comment(55, "updated", 7, EntityType.MERGE_REQUEST)

        assert note.body == "updated"

    @pytest.mark.asyncio
    async def test_update_comment_requires_entity(self, client, handler):
        with pytest.raises(ValueError):
            await client.update_comment(55, "updated")

        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_commit_files_encodes_binary_content(self, client, handler):
        handler.routes[("POST", f"{PROJECT}/repository/commits")] = httpx.Response(
            201, json={"id": "c0ffee", "message": "Add files"}
        )
        files = [
            CommitFile(path="README.md", content="# Title\n"),
            CommitFile(path="logo.png", content=b"\x89PNG\r\n"),
            CommitFile(path="old.txt", action=CommitAction.DELETE),
        ]

        commit = await client.commit_files("feature", files, "Add files")

        assert commit.id == "c0ffee"
        payload = handler.body(handler.requests[0])
        assert payload["branch"] == "feature"
        assert payload["commit_message"] == "Add files"
        assert payload["actions"] == [
            {"action": "create", "file_path": "README.md", "content": "# Title\n"},
            {
                "action": "create",
                "file_path": "logo.png",
                "content": base64.b64encode(b"\x89PNG\r\n").decode(),
                "encoding": "base64",
            },
            {"action": "delete", "file_path": "old.txt"},
        ]

    @pytest.mark.asyncio
    async def test_commit_files_encodes_binary_path_given_text(self, client, handler):
        handler.routes[("POST", f"{PROJECT}/repository/commits")] = httpx.Response(201, json={"id": "e1"})
        files = [CommitFile(path="logo.png", content="PNGDATA")]

        await client.commit_files("feature", files, "Add logo")

        assert handler.body(handler.requests[0])["actions"] == [
            {
                "action": "create",
                "file_path": "logo.png",
                "content": base64.b64encode(b"PNGDATA").decode(),
                "encoding": "base64",
            },
        ]

    @pytest.mark.asyncio
    async def test_commit_files_sends_text_path_given_bytes_verbatim(self, client, handler):
        handler.routes[("POST", f"{PROJECT}/repository/commits")] = httpx.Response(201, json={"id": "e2"})
        files = [CommitFile(path="notes.md", content=b"- item\n", action=CommitAction.UPDATE)]

        await client.commit_files("feature", files, "Update notes")

        assert handler.body(handler.requests[0])["actions"] == [
            {"action": "update", "file_path": "notes.md", "content": "- item\n"},
        ]

    @pytest.mark.asyncio
    async def test_delete_files(self, client, handler):
        handler.routes[("POST", f"{PROJECT}/repository/commits")] = httpx.Response(201, json={"id": "d1"})

        await client.delete_files("feature", ["a.txt", "b/c.txt"], "Remove files")

        actions = handler.body(handler.requests[0])["actions"]
        assert actions == [
            {"action": "delete", "file_path": "a.txt"},
            {"action": "delete", "file_path": "b/c.txt"},
        ]

    @pytest.mark.asyncio
    async def test_server_error_is_retried(self, client, handler, fake_sleep):
        handler.routes[("GET", PROJECT)] = [
            httpx.Response(502, text="bad gateway"),
            httpx.Response(200, json={"id": 123, "name": "demo", "default_branch": "trunk"}),
        ]

        assert await client.get_default_branch() == "trunk"
        assert len(handler.calls("GET", PROJECT)) == 2
        assert fake_sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_error_keeps_status_and_body(self, client, handler, fake_sleep):
        handler.routes[("GET", PROJECT)] = httpx.Response(403, text='{"message":"403 Forbidden"}')

        with pytest.raises(TransientApiError) as exc_info:
            await client.get_project()

        assert exc_info.value.status_code == 403
        assert exc_info.value.body == '{"message":"403 Forbidden"}'
        assert len(handler.calls("GET", PROJECT)) == 3
        assert fake_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_not_found_raises_not_found_error(self, client):
        with pytest.raises(NotFoundError) as exc_info:
            await client.get_issue(999)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_transport_error_propagates_after_retries(self, retrier, fake_sleep):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = GitLabApiClient(
            "glpat-test", 123, base_url=BASE_URL, retrier=retrier, transport=httpx.MockTransport(handler)
        )

        with pytest.raises(httpx.ConnectError):
            await client.get_project()

        assert len(fake_sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_user_permissions(self, client, handler):
        handler.routes[("GET", PROJECT)] = httpx.Response(200, json={
            "id": 123, "name": "demo",
            "permissions": {"project_access": {"access_level": 30}, "group_access": None},
        })

        permissions = await client.get_user_permissions()

        assert permissions["project_access"]["access_level"] == 30


class TestGetOrCreateBranchRef:
    """Test suite for branch resolution."""

    @pytest.mark.asyncio
    async def test_existing_branch_returns_head_without_side_effects(self, client, handler):
        handler.routes[("GET", f"{PROJECT}/repository/branches/feature")] = httpx.Response(
            200, json=branch_json("feature", "abc123")
        )

        first = await client.get_or_create_branch_ref("feature")
        second = await client.get_or_create_branch_ref("feature")

        assert first == second == "abc123"
        assert all(r.method == "GET" for r in handler.requests)

    @pytest.mark.asyncio
    async def test_missing_branch_created_from_base(self, client, handler):
        handler.routes[("GET", f"{PROJECT}/repository/branches/develop")] = httpx.Response(
            200, json=branch_json("develop", "base999")
        )
        handler.routes[("POST", f"{PROJECT}/repository/branches")] = httpx.Response(
            201, json=branch_json("feature", "base999")
        )

        head = await client.get_or_create_branch_ref("feature", base_branch="develop")

        assert head == "base999"
        create = handler.calls("POST", f"{PROJECT}/repository/branches")
        assert len(create) == 1
        assert handler.body(create[0]) == {"branch": "feature", "ref": "base999"}

    @pytest.mark.asyncio
    async def test_missing_branch_without_override_uses_default_branch(self, client, handler):
        handler.routes[("GET", PROJECT)] = httpx.Response(
            200, json={"id": 123, "name": "demo", "default_branch": "main"}
        )
        handler.routes[("GET", f"{PROJECT}/repository/branches/main")] = httpx.Response(
            200, json=branch_json("main", "main111")
        )
        handler.routes[("POST", f"{PROJECT}/repository/branches")] = httpx.Response(
            201, json=branch_json("feature", "main111")
        )

        assert await client.get_or_create_branch_ref("feature") == "main111"

    @pytest.mark.asyncio
    async def test_missing_override_falls_back_to_default_branch(self, client, handler):
        handler.routes[("GET", PROJECT)] = httpx.Response(
            200, json={"id": 123, "name": "demo", "default_branch": "main"}
        )
        handler.routes[("GET", f"{PROJECT}/repository/branches/main")] = httpx.Response(
            200, json=branch_json("main", "main111")
        )
        handler.routes[("POST", f"{PROJECT}/repository/branches")] = httpx.Response(
            201, json=branch_json("feature", "main111")
        )

        assert await client.get_or_create_branch_ref("feature", base_branch="gone") == "main111"

    @pytest.mark.asyncio
    async def test_missing_branch_lookups_pay_full_retry_budget(self, client, handler, fake_sleep):
        handler.routes[("GET", PROJECT)] = httpx.Response(
            200, json={"id": 123, "name": "demo", "default_branch": "main"}
        )
        handler.routes[("GET", f"{PROJECT}/repository/branches/main")] = httpx.Response(
            200, json=branch_json("main", "main111")
        )
        handler.routes[("POST", f"{PROJECT}/repository/branches")] = httpx.Response(
            201, json=branch_json("feature", "main111")
        )

        await client.get_or_create_branch_ref("feature", base_branch="gone")

        assert len(handler.calls("GET", f"{PROJECT}/repository/branches/feature")) == 3
        assert len(handler.calls("GET", f"{PROJECT}/repository/branches/gone")) == 3
        assert fake_sleep.delays == [1.0, 2.0, 1.0, 2.0]

    @pytest.mark.asyncio
    async def test_branch_lookup_error_other_than_404_propagates(self, client, handler):
        handler.routes[("GET", f"{PROJECT}/repository/branches/feature")] = httpx.Response(500, text="oops")

        with pytest.raises(TransientApiError):
            await client.get_or_create_branch_ref("feature")

        assert handler.calls("POST", f"{PROJECT}/repository/branches") == []

    @pytest.mark.asyncio
    async def test_create_conflict_surfaces(self, client, handler):
        handler.routes[("GET", f"{PROJECT}/repository/branches/main")] = httpx.Response(
            200, json=branch_json("main", "main111")
        )
        handler.routes[("POST", f"{PROJECT}/repository/branches")] = httpx.Response(
            400, json={"message": "Branch already exists"}
        )

        with pytest.raises(TransientApiError) as exc_info:
            await client.get_or_create_branch_ref("feature", base_branch="main")

        assert "Branch already exists" in exc_info.value.body
