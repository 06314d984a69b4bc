import hmac

from fastapi import Depends, Header

from publisphere.config.settings import Settings, get_settings
from publisphere.v1.core.exceptions import UnauthorizedError


async def require_service_token(
    authorization: str | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Guard for the job endpoints, which are called by the cron trigger and
    internal tooling rather than end users.

    When no CRON_SECRET is configured (development only, enforced by
    Settings) every request is accepted.
    """
    if not settings.cron_secret:
        return

    expected = f"Bearer {settings.cron_secret}"
    if not authorization or not hmac.compare_digest(
        authorization.encode(), expected.encode()
    ):
        raise UnauthorizedError("Invalid or missing service token")


# Convenience type alias for dependency injection
ServiceTokenDep = Depends(require_service_token)
