import logging
import os
from typing import Optional


def configure_logging_if_needed(level: Optional[str] = None) -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=(level or os.getenv("LOG_LEVEL") or "INFO").upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def mask_bearer(value: Optional[str]) -> Optional[str]:
    """Keep the last 4 chars of a bearer token; anything else is masked whole."""
    if not value:
        return value
    scheme, _, token = value.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return "****"
    if len(token) <= 8:
        return "Bearer ****"
    return f"Bearer ****{token[-4:]}"
