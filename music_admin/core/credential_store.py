import json
import os
import threading
from typing import Any, Dict, Optional

from music_admin.core.config import settings
from music_admin.core.logger import logger


class CredentialStore:
    """
    File-backed store for the admin session: the bearer token and the cached
    user object returned at login. Nothing else is persisted locally.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path or settings.CREDENTIALS_PATH
        self._lock = threading.Lock()

    def load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"⚠️ Credentials file '{self.path}' is corrupt, ignoring it: {e}")
            return {}

        return data if isinstance(data, dict) else {}

    def get_token(self) -> Optional[str]:
        return self.load().get("token")

    def get_user(self) -> Optional[Dict[str, Any]]:
        return self.load().get("user")

    def save(self, token: str, user: Optional[Dict[str, Any]] = None):
        with self._lock:
            data = self.load()
            data["token"] = token
            if user is not None:
                data["user"] = user

            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(data, f)

    def clear(self):
        with self._lock:
            if os.path.exists(self.path):
                os.remove(self.path)
                logger.info("🧹 Stored credentials cleared")

credential_store = CredentialStore()
