# ourplanet/http/headers.py

from ourplanet.logging.logger import setup_logger

log = setup_logger(__name__)

DEFAULT_USER_AGENT = "ourplanet/0.1"


def build_headers(
    extra: dict[str, str] | None = None,
    *,
    user_agent: str = DEFAULT_USER_AGENT,
) -> dict[str, str]:
    headers = {
        "User-Agent": user_agent,
        "Accept": "application/json",
        "Accept-Encoding": "gzip, deflate",
    }

    if extra:
        headers.update(extra)

    log.debug("Headers built: UA=%s", headers.get("User-Agent"))

    return headers
