import sys
from pathlib import Path

import pytest

# Makes the tests runnable from a checkout, without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent / "src" / "py"))

from dirserve.http.model import HTTPBodyBlob, HTTPBodyStream, HTTPRequest, HTTPResponse  # noqa: E402
from dirserve.services.files import FileService  # noqa: E402


@pytest.fixture
def root(tmp_path: Path) -> Path:
	"""A directory with a few files and nested directories:

	```
	a.txt        (3 bytes)
	b/
	data.bin
	style.css
	x/y/z.json
	```
	"""
	(tmp_path / "a.txt").write_bytes(b"abc")
	(tmp_path / "b").mkdir()
	(tmp_path / "data.bin").write_bytes(bytes(range(256)) * 1_000)
	(tmp_path / "style.css").write_text("body { color: red; }")
	(tmp_path / "x" / "y").mkdir(parents=True)
	(tmp_path / "x" / "y" / "z.json").write_text('{"z": 1}')
	return tmp_path.resolve()


@pytest.fixture
def service(root: Path) -> FileService:
	return FileService(root)


def get(service: FileService, path: str, method: str = "GET") -> HTTPResponse:
	return service.process(HTTPRequest(method, path))


def body(response: HTTPResponse) -> bytes:
	"""Returns the whole body of the response, consuming streams."""
	if isinstance(response.body, HTTPBodyBlob):
		return response.body.payload
	elif isinstance(response.body, HTTPBodyStream):
		try:
			return b"".join(response.body.stream)
		finally:
			response.body.close()
	else:
		return b""


def text(response: HTTPResponse) -> str:
	return body(response).decode("utf8")


# EOF
