from __future__ import annotations

import json
from pathlib import Path

import pytest

from culvert_ledger.errors import UpstreamFailure
from culvert_ledger.worker_client import (
    ImageAttachment,
    WorkerClient,
    WorkerResult,
    is_image_attachment,
)
from tests.helpers.fakes import FakeResponse, FakeSession, connection_error


@pytest.mark.parametrize(
    ("content_type", "filename", "expected"),
    [
        ("image/png", None, True),
        (None, "SHOT.JPG", True),
        ("application/octet-stream", "scores.webp", True),
        ("text/plain", "notes.txt", False),
        (None, None, False),
        (None, "png", False),
    ],
)
def test_is_image_attachment(content_type, filename, expected):
    assert is_image_attachment(content_type, filename) is expected


def test_from_path_guesses_content_type(tmp_path: Path):
    p = tmp_path / "week.png"
    p.write_bytes(b"\x89PNG")
    att = ImageAttachment.from_path(p)
    assert att.name == "week.png"
    assert att.content_type == "image/png"
    assert att.data == b"\x89PNG"
    assert att.size == 4
    assert att.is_image


def _client(*responses, **kwargs) -> tuple[WorkerClient, FakeSession]:
    session = FakeSession(*responses)
    client = WorkerClient(webhook_url="https://n8n.example/webhook/x", session=session, **kwargs)  # type: ignore[arg-type]
    return client, session


def test_send_images_builds_multipart_and_metadata():
    client, session = _client(FakeResponse(200, '{"output": "[]"}'))
    result = client.send_images(
        [
            ImageAttachment(name="a.png", content_type="image/png", data=b"A"),
            ImageAttachment(name="notes.txt", content_type="text/plain", data=b"skip"),
            ImageAttachment(name="b.jpg", content_type=None, data=b"BB"),
        ],
        date="2024-03-01",
        context={"channelId": "c1", "authorId": "u1"},
    )
    assert result == WorkerResult(200, '{"output": "[]"}')
    assert result.ok

    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://n8n.example/webhook/x"
    assert call["auth"] is None
    assert call["files"] == [
        ("file1", ("a.png", b"A", "image/png")),
        ("file2", ("b.jpg", b"BB", "application/octet-stream")),
    ]
    metadata = json.loads(call["data"]["metadata"])
    assert metadata["date"] == "2024-03-01"
    assert metadata["note"] == ""
    assert metadata["channelId"] == "c1"
    assert metadata["authorId"] == "u1"
    assert [m["name"] for m in metadata["attachmentMeta"]] == ["a.png", "b.jpg"]
    assert metadata["attachmentMeta"][1]["size"] == 2
    assert metadata["sentAt"].endswith("Z")


def test_basic_auth_sent_only_when_both_parts_set():
    client, session = _client(basic_auth_username="u", basic_auth_password="p")
    client.send_images([ImageAttachment(name="a.png", data=b"A")])
    assert session.calls[0]["auth"] == ("u", "p")

    client, session = _client(basic_auth_username="u")
    client.send_images([ImageAttachment(name="a.png", data=b"A")])
    assert session.calls[0]["auth"] is None


def test_no_images_raises():
    client, session = _client()
    with pytest.raises(ValueError, match="No image attachments"):
        client.send_images([ImageAttachment(name="x.txt", content_type="text/plain", data=b"")])
    assert session.calls == []


def test_downloads_url_attachments():
    client, session = _client(FakeResponse(200, b"remote-bytes"), FakeResponse(200, "ok"))
    client.send_images([ImageAttachment(name="r.png", url="https://cdn.example/r.png")])
    assert session.calls[0]["method"] == "GET"
    assert session.calls[0]["url"] == "https://cdn.example/r.png"
    assert session.calls[1]["files"] == [("file1", ("r.png", b"remote-bytes", "application/octet-stream"))]


def test_download_failure_raises_upstream():
    client, _ = _client(FakeResponse(404, "gone"))
    with pytest.raises(UpstreamFailure) as excinfo:
        client.send_images([ImageAttachment(name="r.png", url="https://cdn.example/r.png")])
    assert excinfo.value.status == 404


def test_non_2xx_is_returned_not_raised():
    client, _ = _client(FakeResponse(500, "boom"))
    result = client.send_images([ImageAttachment(name="a.png", data=b"A")])
    assert result.status == 500
    assert not result.ok


def test_transport_error_raises_upstream():
    client, _ = _client(connection_error("refused"))
    with pytest.raises(UpstreamFailure, match="refused"):
        client.send_images([ImageAttachment(name="a.png", data=b"A")])
