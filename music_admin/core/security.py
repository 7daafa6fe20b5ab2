from music_admin.core.config import settings
from music_admin.core.credential_store import credential_store
from music_admin.core.errors import SessionExpired

async def require_session() -> str:
    """
    Dependency for every admin route: there must be a stored token.
    Without one the client is sent to the login route.
    """
    token = credential_store.get_token()
    if not token:
        raise SessionExpired(redirect=settings.LOGIN_ROUTE, message="Not logged in")
    return token
