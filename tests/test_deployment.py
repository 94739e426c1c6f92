"""Tests for content-addressed upload and deployment creation."""
import hashlib

import httpx
import pytest

from conftest import FakeVercel
from sitepub.core.exceptions import DeploymentFailed, InvalidCredential, UploadFailed
from sitepub.services.deployment import DeploymentPublisher, content_hash, to_vercel_framework
from sitepub.services.vercel import VercelClient

FILES = [
    {"path": "index.html", "content": "<h1>Hi</h1>"},
    {"path": "about.html", "content": "<h1>About</h1>"},
    {"path": "css/site.css", "content": "body { margin: 0 }"},
]


def test_content_hash_is_sha1_of_raw_bytes() -> None:
    data = "<h1>Hi</h1>".encode("utf-8")
    assert content_hash(data) == hashlib.sha1(data).hexdigest()
    assert content_hash(data) == content_hash(b"<h1>Hi</h1>")
    assert len(content_hash(data)) == 40


@pytest.mark.parametrize(
    "framework, expected",
    [("nextjs", "nextjs"), ("vite_react", "vite"), ("html", None), ("svelte", None), (None, None)],
)
def test_framework_mapping(framework, expected) -> None:
    assert to_vercel_framework(framework) == expected


@pytest.mark.asyncio
async def test_publish_uploads_then_deploys(fake_vercel: FakeVercel, vercel_client: VercelClient) -> None:
    result = await DeploymentPublisher(vercel_client, upload_concurrency=2).publish(
        FILES, name="acme-landing", framework="vite_react"
    )

    assert result.url == "https://acme-landing-dpl_1.vercel.app"
    assert result.deployment_id == "dpl_1"
    assert result.uploaded_files == 3
    assert result.reused_files == 0

    # Deployment is only requested after every upload has finished
    assert fake_vercel.events == ["upload", "upload", "upload", "deploy"]

    payload = fake_vercel.deployments[0]
    assert payload["name"] == "acme-landing"
    assert payload["projectSettings"] == {"framework": "vite"}
    assert "target" not in payload
    assert [ref["file"] for ref in payload["files"]] == ["index.html", "about.html", "css/site.css"]
    for ref, entry in zip(payload["files"], FILES):
        raw = entry["content"].encode("utf-8")
        assert ref["sha"] == hashlib.sha1(raw).hexdigest()
        assert ref["size"] == len(raw)


@pytest.mark.asyncio
async def test_upload_headers(fake_vercel: FakeVercel, vercel_client: VercelClient) -> None:
    await DeploymentPublisher(vercel_client).publish(FILES[:1], name="acme")

    request = fake_vercel.upload_requests[0]
    assert request.headers["authorization"] == "Bearer user-token"
    assert request.headers["content-type"] == "application/octet-stream"
    assert request.headers["content-length"] == str(len(b"<h1>Hi</h1>"))
    assert request.headers["x-vercel-digest"] == hashlib.sha1(b"<h1>Hi</h1>").hexdigest()


@pytest.mark.asyncio
async def test_existing_content_counts_as_success(fake_vercel: FakeVercel, vercel_client: VercelClient) -> None:
    publisher = DeploymentPublisher(vercel_client)
    await publisher.publish(FILES, name="acme")

    again = await publisher.publish(FILES, name="acme")

    assert again.deployment_id == "dpl_2"
    assert again.uploaded_files == 0
    assert again.reused_files == 3
    assert again.bytes_transferred == 0
    assert len(fake_vercel.stored) == 3


@pytest.mark.asyncio
async def test_duplicate_content_within_one_build(fake_vercel: FakeVercel, vercel_client: VercelClient) -> None:
    files = [{"path": "a.txt", "content": "same"}, {"path": "b.txt", "content": "same"}]

    result = await DeploymentPublisher(vercel_client, upload_concurrency=1).publish(files, name="dup")

    assert result.uploaded_files == 1
    assert result.reused_files == 1
    assert [ref["file"] for ref in fake_vercel.deployments[0]["files"]] == ["a.txt", "b.txt"]


@pytest.mark.parametrize("status", [401, 403])
@pytest.mark.asyncio
async def test_upload_auth_failure_is_invalid_credential(
    status: int,
    fake_vercel: FakeVercel,
    vercel_client: VercelClient,
) -> None:
    fake_vercel.upload_status = status

    with pytest.raises(InvalidCredential) as exc_info:
        await DeploymentPublisher(vercel_client).publish(FILES, name="acme")

    assert exc_info.value.provider_status == status
    assert "deploy" not in fake_vercel.events


@pytest.mark.asyncio
async def test_other_upload_failure_aborts(fake_vercel: FakeVercel, vercel_client: VercelClient) -> None:
    fake_vercel.upload_status = 500

    with pytest.raises(UploadFailed) as exc_info:
        await DeploymentPublisher(vercel_client).publish(FILES, name="acme")

    assert exc_info.value.message == "Failed to upload files to Vercel."
    assert fake_vercel.deployments == []


@pytest.mark.asyncio
async def test_network_error_during_upload() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        client = VercelClient("t", http, base_url="https://api.vercel.com")
        with pytest.raises(UploadFailed):
            await DeploymentPublisher(client).publish(FILES, name="acme")


@pytest.mark.parametrize("status", [401, 403])
@pytest.mark.asyncio
async def test_deploy_auth_failure(status: int, fake_vercel: FakeVercel, vercel_client: VercelClient) -> None:
    fake_vercel.deploy_status = status
    with pytest.raises(InvalidCredential):
        await DeploymentPublisher(vercel_client).publish(FILES, name="acme")


@pytest.mark.asyncio
async def test_deploy_failure_carries_provider_message(fake_vercel: FakeVercel, vercel_client: VercelClient) -> None:
    fake_vercel.deploy_status = 400
    fake_vercel.deploy_error_message = "Project name is invalid"

    with pytest.raises(DeploymentFailed) as exc_info:
        await DeploymentPublisher(vercel_client).publish(FILES, name="acme")

    assert exc_info.value.message == "Project name is invalid"


@pytest.mark.asyncio
async def test_deploy_failure_without_message(fake_vercel: FakeVercel, vercel_client: VercelClient) -> None:
    fake_vercel.deploy_status = 500

    with pytest.raises(DeploymentFailed) as exc_info:
        await DeploymentPublisher(vercel_client).publish(FILES, name="acme")

    assert exc_info.value.message == "Deployment failed. Please try again."


@pytest.mark.asyncio
async def test_team_id_is_sent_as_query(fake_vercel: FakeVercel, vercel_http: httpx.AsyncClient) -> None:
    client = VercelClient("t", vercel_http, base_url="https://api.vercel.com", team_id="team_42")
    await DeploymentPublisher(client).publish(FILES[:1], name="acme", target="production")

    assert fake_vercel.upload_requests[0].url.params["teamId"] == "team_42"
    assert fake_vercel.deployments[0]["target"] == "production"
