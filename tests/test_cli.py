import argparse
import socket
from pathlib import Path

import pytest

from dirserve.__main__ import main, parseAddress, parsePort, parser
from dirserve.config import HOST, PORT


def test_ports():
	assert parsePort("0") == 0
	assert parsePort("8080") == 8080
	assert parsePort("65535") == 65535
	for value in ["-1", "65536", "http", ""]:
		with pytest.raises(argparse.ArgumentTypeError):
			parsePort(value)


def test_addresses():
	assert parseAddress("127.0.0.1") == "127.0.0.1"
	assert parseAddress("0.0.0.0") == "0.0.0.0"  # nosec: B104
	assert parseAddress("::1") == "::1"
	for value in ["localhost", "256.0.0.1", ""]:
		with pytest.raises(argparse.ArgumentTypeError):
			parseAddress(value)


def test_defaults():
	options = parser().parse_args(["."])
	assert options.directory == "."
	assert options.address == HOST
	assert options.port == PORT
	options = parser().parse_args(
		["-a", "127.0.0.1", "-p", "9000", "--no-log-requests", "/srv"]
	)
	assert options.directory == "/srv"
	assert options.address == "127.0.0.1"
	assert options.port == 9000
	assert options.logRequests is False


@pytest.mark.parametrize(
	"args", [[], [".", "-p", "port"], [".", "-a", "localhost"], [".", "--unknown"]]
)
def test_usage_errors(args: list[str]):
	with pytest.raises(SystemExit) as e:
		main(args)
	assert e.value.code == 2


def test_missing_root(tmp_path: Path):
	assert main([str(tmp_path / "missing")]) == 1


def test_unavailable_port(root: Path):
	with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
		sock.bind(("127.0.0.1", 0))
		sock.listen(1)
		port: int = sock.getsockname()[1]
		assert main([str(root), "-a", "127.0.0.1", "-p", str(port)]) == 1


# EOF
