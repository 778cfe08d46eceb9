"""
Adapter: bearer token lookup.

Sign-in happens elsewhere; the issued token is dropped into client
storage under `access_token` and attached to first-party requests.
"""

from typing import Optional

from iqx.domain.ports import ClientStorage

ACCESS_TOKEN_KEY = "access_token"


class TokenStore:
    """Reads and writes the access token in client storage."""

    def __init__(self, storage: ClientStorage) -> None:
        self._storage = storage

    def get_token(self) -> Optional[str]:
        token = self._storage.get_item(ACCESS_TOKEN_KEY)
        return token if isinstance(token, str) and token else None

    def set_token(self, token: str) -> None:
        self._storage.set_item(ACCESS_TOKEN_KEY, token)

    def clear(self) -> None:
        self._storage.remove_item(ACCESS_TOKEN_KEY)

    def auth_headers(self) -> dict[str, str]:
        token = self.get_token()
        return {"Authorization": f"Bearer {token}"} if token else {}
