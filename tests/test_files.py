import os
from pathlib import Path

import pytest

from conftest import body, get, text
from dirserve.http.model import HTTPBodyStream, HTTPRequest
from dirserve.model import (
	DirectoryTarget,
	FileTarget,
	IoFailure,
	NotFound,
	ResolvedTarget,
)
from dirserve.services.files import FileService, classify
from dirserve.streaming import streamFile
from dirserve.utils.files import contentType

NOT_ROOT = pytest.mark.skipif(
	hasattr(os, "geteuid") and os.geteuid() == 0,
	reason="Permissions are not enforced for root",
)


@pytest.mark.parametrize(
	"path,expected",
	[
		("/a.txt", "text/plain; charset=utf-8"),
		("/style.css", "text/css; charset=utf-8"),
		("/x/y/z.json", "application/json"),
		("/data.bin", "application/octet-stream"),
	],
)
def test_content_types(service: FileService, path: str, expected: str):
	res = get(service, path)
	assert res.status == 200
	assert res.getHeader("Content-Type") == expected
	body(res)


def test_content_type_mapping():
	assert contentType("index.html") == "text/html; charset=utf-8"
	assert contentType("index.htm") == "text/html; charset=utf-8"
	assert contentType("feed.xml") == "text/xml"
	assert contentType("archive.tar.xml") == "text/xml"
	# Extensions are case sensitive
	assert contentType("README.TXT") == "application/octet-stream"
	assert contentType("Makefile") == "application/octet-stream"
	assert contentType(".profile") == "application/octet-stream"
	assert contentType("picture.png") == "application/octet-stream"


def test_file_contents(service: FileService, root: Path):
	res = get(service, "/a.txt")
	assert res.getHeader("Content-Length") == "3"
	assert isinstance(res.body, HTTPBodyStream)
	assert body(res) == b"abc"
	res = get(service, "/data.bin")
	assert res.getHeader("Content-Length") == "256000"
	assert not res.shouldClose
	assert body(res) == (root / "data.bin").read_bytes()


def test_empty_file(service: FileService, root: Path):
	(root / "empty.txt").write_bytes(b"")
	res = get(service, "/empty.txt")
	assert res.status == 200
	assert res.getHeader("Content-Length") == "0"
	assert body(res) == b""


def test_encoded_names(service: FileService, root: Path):
	(root / "café au lait.txt").write_bytes("☕".encode("utf8"))
	res = get(service, "/caf%C3%A9%20au%20lait.txt")
	assert res.status == 200
	assert text(res) == "☕"


def test_head_is_processed_like_get(service: FileService):
	res = get(service, "/a.txt", method="HEAD")
	assert res.status == 200
	assert res.getHeader("Content-Length") == "3"
	res.close()
	assert res.body.stream.isClosed


def test_directories(service: FileService):
	for path in ["/", "/b", "/b/", "/x//y/"]:
		res = get(service, path)
		assert res.status == 200
		assert res.getHeader("Content-Type") == "text/html; charset=UTF-8"


def test_not_found(service: FileService):
	for path in ["/missing", "/b/missing/", "/a.txt/child"]:
		res = get(service, path)
		assert res.status == 404
		assert res.getHeader("Content-Type") == "text/plain; charset=utf-8"
		message = text(res)
		assert message.startswith("Not Found: ")
		assert "no such file" in message.lower() or "not a directory" in message.lower()


@pytest.mark.parametrize(
	"path", ["/../etc/passwd", "/%2e%2e/%2e%2e/etc/passwd", "//etc/passwd", "/%FF", "/a%00"]
)
def test_bad_requests(service: FileService, path: str):
	res = get(service, path)
	assert res.status == 400
	assert text(res).startswith("Bad request: ")


def test_error_bodies_do_not_leak_the_root(service: FileService, root: Path):
	assert str(root) not in text(get(service, "/missing"))


@NOT_ROOT
def test_permission_denied(service: FileService, root: Path):
	secret = root / "secret.txt"
	secret.write_text("secret")
	secret.chmod(0)
	hidden = root / "hidden"
	hidden.mkdir()
	hidden.chmod(0)
	try:
		res = get(service, "/secret.txt")
		assert res.status == 403
		assert text(res) == "Forbidden: Permission denied"
		res = get(service, "/hidden/")
		assert res.status == 403
	finally:
		secret.chmod(0o644)
		hidden.chmod(0o755)


def test_io_failures(service: FileService):
	res = service.onError(HTTPRequest("GET", "/a.txt"), IoFailure("Input/output error"))
	assert res.status == 500
	assert res.payload == b"Internal Server Error: Input/output error"


def test_classify(root: Path):
	assert classify(ResolvedTarget(root / "b", "/b/", True, 4096, 0.0)) == DirectoryTarget(
		root / "b", "/b/"
	)
	assert classify(ResolvedTarget(root / "a.txt", "/a.txt", False, 3, 0.0)) == FileTarget(
		root / "a.txt", 3
	)


def test_service_root(root: Path):
	assert FileService(root / "x" / "..").root == root
	with pytest.raises(ValueError):
		FileService(root / "a.txt")


# --
# == Streams


def test_stream_chunks(root: Path):
	stream = streamFile(root / "data.bin", 256_000, size=100_000)
	assert [len(_) for _ in stream] == [100_000, 100_000, 56_000]
	assert stream.isClosed


def test_stream_stops_at_length(root: Path):
	stream = streamFile(root / "a.txt", 2)
	assert list(stream) == [b"ab"]
	assert stream.isClosed


def test_truncated_stream(root: Path):
	stream = streamFile(root / "a.txt", 10)
	assert next(stream) == b"abc"
	with pytest.raises(OSError):
		next(stream)
	assert stream.isClosed


def test_stream_close(root: Path):
	stream = streamFile(root / "data.bin", 256_000, size=1_000)
	assert len(next(stream)) == 1_000
	stream.close()
	assert stream.isClosed
	with pytest.raises(StopIteration):
		next(stream)


def test_stream_open_errors(root: Path):
	with pytest.raises(NotFound):
		streamFile(root / "missing", 10)


# EOF
