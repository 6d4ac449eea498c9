from os import getenv

PORT: int = int(getenv("PORT", 8000))

# By default the server is reachable from everywhere, use `HOST=127.0.0.1`
# to keep it local.
HOST: str = getenv("HOST", "0.0.0.0")  # nosec: B104

LOG_REQUESTS: bool = getenv("DIRSERVE_LOG_REQUESTS", "1") == "1"

# EOF
