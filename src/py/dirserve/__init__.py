from .http.model import HTTPRequest, HTTPResponse  # NOQA: F401
from .model import (  # NOQA: F401
	RequestError,
	MalformedEncoding,
	InvalidPath,
	PathEscape,
	FileSystemError,
	NotFound,
	PermissionDenied,
	IoFailure,
)
from .services.files import FileService  # NOQA: F401
from .server import run  # NOQA: F401

__version__: str = "1.0.0"

# EOF
