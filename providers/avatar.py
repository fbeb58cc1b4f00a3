"""Talking-head video backends (D-ID first, HeyGen second)."""
from __future__ import annotations

import threading
from typing import Dict, Optional

from pydantic import BaseModel

from .base import JobFailed
from .http import HttpBackend


class AvatarRequest(BaseModel):
    text: str
    audio_ref: Optional[str] = None
    persona_id: str = "sarah-professional-hr"
    presenter_id: str = "d-AQH1v5hqH8J"
    voice_id: str = "professional-female-sarah"


class DIDBackend(HttpBackend):
    capability = "avatar"

    def _auth(self) -> Dict[str, str]:
        return self._headers({"Authorization": f"Basic {self.route.api_key() or ''}"})

    def _script(self, request: AvatarRequest) -> Dict[str, object]:
        # Locally stored audio is not reachable by the vendor; let it speak the text instead.
        if request.audio_ref and request.audio_ref.startswith(("http://", "https://")):
            return {"type": "audio", "audio_url": request.audio_ref}
        return {
            "type": "text",
            "input": request.text,
            "provider": {"type": "microsoft", "voice_id": "en-US-JennyNeural"},
        }

    def invoke(self, request: AvatarRequest, cancel: Optional[threading.Event] = None) -> str:
        talk = self._object(
            self._send(
                "POST",
                self._url("/talks"),
                headers=self._auth(),
                json={
                    "script": self._script(request),
                    "config": {"fluent": True, "pad_audio": 0.0},
                    "presenter_id": request.presenter_id,
                    "driver_id": self.route.options.get("driver_id", "uM00mGdxlpk"),
                    "background": {"color": "#ffffff"},
                },
            )
        )
        talk_id = self._dig(talk, "id")

        def check() -> Optional[str]:
            status = self._object(self._send("GET", self._url(f"/talks/{talk_id}"), headers=self._auth()))
            state = str(status.get("status", "")).lower()
            if state in ("error", "rejected"):
                raise JobFailed(f"d-id talk {talk_id} failed", backend=self.id)
            if state == "done":
                return str(self._dig(status, "result_url"))
            return None

        video_url = self._poll(check, cancel=cancel)
        return self._persist(self._download(video_url), kind="video", suffix=".mp4")


class HeyGenBackend(HttpBackend):
    capability = "avatar"

    def _auth(self) -> Dict[str, str]:
        return self._headers({"X-Api-Key": self.route.api_key() or ""})

    def invoke(self, request: AvatarRequest, cancel: Optional[threading.Event] = None) -> str:
        job = self._object(
            self._send(
                "POST",
                self._url(self.route.endpoint or "/v1/video.generate"),
                headers=self._auth(),
                json={
                    "video_inputs": [
                        {
                            "character": {"type": "avatar", "avatar_id": request.presenter_id},
                            "voice": {"type": "text", "input_text": request.text, "voice_id": request.voice_id},
                            "background": {"type": "color", "value": "#ffffff"},
                        }
                    ],
                    "test": False,
                    "aspect_ratio": "16:9",
                },
            )
        )
        video_id = self._dig(job, "data", "video_id")

        def check() -> Optional[str]:
            status = self._object(
                self._send("GET", self._url("/v1/video_status.get"), headers=self._auth(), params={"video_id": video_id})
            )
            state = str(self._dig(status, "data", "status")).lower()
            if state == "failed":
                raise JobFailed(f"heygen video {video_id} failed", backend=self.id)
            if state == "completed":
                return str(self._dig(status, "data", "video_url"))
            return None

        video_url = self._poll(check, cancel=cancel)
        return self._persist(self._download(video_url), kind="video", suffix=".mp4")


__all__ = ["AvatarRequest", "DIDBackend", "HeyGenBackend"]
