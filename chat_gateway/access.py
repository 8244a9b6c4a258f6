from __future__ import annotations

from typing import Sequence


class AccessDeniedError(PermissionError):
    pass


def check_access(allowed_codes: Sequence[str], access_code: str | None) -> None:
    """Pre-flight gate; an empty allow-list admits every request."""
    if not allowed_codes:
        return
    if access_code is None or access_code.strip() not in allowed_codes:
        raise AccessDeniedError("Invalid or missing access code")
