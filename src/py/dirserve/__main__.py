import argparse
import ipaddress
import sys

from . import __version__
from .config import HOST, LOG_REQUESTS, PORT
from .server import run
from .services.files import FileService
from .utils.logging import error


def parsePort(value: str) -> int:
	try:
		port = int(value)
	except ValueError:
		port = -1
	if not 0 <= port <= 65535:
		raise argparse.ArgumentTypeError("Invalid port")
	return port


def parseAddress(value: str) -> str:
	try:
		return str(ipaddress.ip_address(value))
	except ValueError:
		raise argparse.ArgumentTypeError("Invalid address") from None


def parser() -> argparse.ArgumentParser:
	res = argparse.ArgumentParser(
		prog="dirserve",
		description="Serves a directory over HTTP",
		formatter_class=argparse.ArgumentDefaultsHelpFormatter,
	)
	res.add_argument("directory", metavar="DIRECTORY", help="Directory to serve")
	res.add_argument(
		"-a",
		"--address",
		action="store",
		dest="address",
		type=parseAddress,
		help="IP address to listen on",
		default=HOST,
	)
	res.add_argument(
		"-p",
		"--port",
		action="store",
		dest="port",
		type=parsePort,
		help="Port to listen on",
		default=PORT,
	)
	res.add_argument(
		"--no-log-requests",
		action="store_false",
		dest="logRequests",
		help="Does not log each request",
		default=LOG_REQUESTS,
	)
	res.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
	return res


def main(args: list[str] | None = None) -> int:
	options = parser().parse_args(args)
	try:
		service = FileService(options.directory)
	except ValueError as e:
		error(str(e), "BADROOT")
		return 1
	try:
		run(
			service,
			host=options.address,
			port=options.port,
			logRequests=options.logRequests,
		)
	except OSError:
		# Already logged by the server
		return 1
	return 0


if __name__ == "__main__":
	sys.exit(main())

# EOF
