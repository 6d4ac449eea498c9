# Reason phrases for the status codes the server produces
HTTP_STATUS: dict[int, str] = {
	200: "OK",
	400: "Bad Request",
	403: "Forbidden",
	404: "Not Found",
	500: "Internal Server Error",
}

# EOF
