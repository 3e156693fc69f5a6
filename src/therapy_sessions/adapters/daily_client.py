"""Daily.co video room client adapter."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

import httpx


@dataclass(frozen=True)
class VideoRoom:
    """A provisioned video room."""

    name: str
    url: str


class VideoRoomClient(Protocol):
    """Interface for video room provisioning."""

    async def create_room(self, name: str, expires_at: datetime) -> VideoRoom:
        """Create a private room that expires at the given instant."""

    async def create_meeting_token(
        self,
        room_name: str,
        user_id: UUID,
        is_owner: bool,
        expires_at: datetime,
    ) -> str:
        """Return a meeting token granting access to a private room."""


@dataclass
class HttpxDailyClient:
    """Daily.co REST client implemented with httpx."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "HttpxDailyClient":
        """Create a Daily client with a managed httpx session."""
        return cls(api_key=api_key, base_url=base_url, http_client=httpx.AsyncClient())

    async def create_room(self, name: str, expires_at: datetime) -> VideoRoom:
        """Create a private room via Daily's rooms API."""
        payload: dict[str, object] = {
            "name": name,
            "privacy": "private",
            "properties": {
                "exp": int(expires_at.timestamp()),
                "enable_chat": True,
                "enable_screenshare": True,
                "start_video_off": False,
                "start_audio_off": False,
            },
        }
        response = await self.http_client.post(
            f"{self.base_url}/rooms",
            json=payload,
            headers=self._headers(),
            timeout=10,
        )
        response.raise_for_status()
        data = response.json()
        return VideoRoom(name=str(data["name"]), url=str(data["url"]))

    async def create_meeting_token(
        self,
        room_name: str,
        user_id: UUID,
        is_owner: bool,
        expires_at: datetime,
    ) -> str:
        """Create a meeting token via Daily's meeting-tokens API."""
        payload: dict[str, object] = {
            "properties": {
                "room_name": room_name,
                "user_id": str(user_id),
                "is_owner": is_owner,
                "exp": int(expires_at.timestamp()),
            }
        }
        response = await self.http_client.post(
            f"{self.base_url}/meeting-tokens",
            json=payload,
            headers=self._headers(),
            timeout=10,
        )
        response.raise_for_status()
        token = response.json().get("token")
        if not token:
            raise RuntimeError("Daily returned an empty meeting token")
        return str(token)

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}
