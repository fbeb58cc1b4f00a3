"""Speech synthesis and recognition backends."""
from __future__ import annotations

import os
import threading
from typing import Any, Dict, Optional

from pydantic import BaseModel

from .base import JobFailed, MalformedPayload
from .http import HttpBackend

PLAYHT_VOICES: Dict[str, str] = {
    "professional-female-sarah": "s3://voice-cloning-zero-shot/d9ff78ba-d016-47f6-b0ef-dd630f59414e/female-cs/manifest.json",
    "professional-male-john": "s3://voice-cloning-zero-shot/8b1d8c5f-0c5a-4c1a-9c1a-8b1d8c5f0c5a/male-cs/manifest.json",
    "professional-female-priya": "s3://voice-cloning-zero-shot/7c1d8c5f-0c5a-4c1a-9c1a-7c1d8c5f0c5a/female-cs/manifest.json",
    "professional-male-david": "s3://voice-cloning-zero-shot/6b1d8c5f-0c5a-4c1a-9c1a-6b1d8c5f0c5a/male-cs/manifest.json",
}
ELEVENLABS_DEFAULT_VOICE = "21m00Tcm4TlvDq8ikWAM"

_DONE = ("complete", "completed", "done")
_FAILED = ("failed", "error")


class SynthesisRequest(BaseModel):
    text: str
    voice_id: str = "professional-female-sarah"
    persona_id: str = "sarah-professional-hr"


class RecognitionRequest(BaseModel):
    audio: bytes
    content_type: str = "audio/webm"


def _voice(options: Dict[str, Any], voice_id: str, default: str) -> str:
    voices = options.get("voices") or {}
    return str(voices.get(voice_id) or default)


class PlayHTBackend(HttpBackend):
    capability = "synthesis"

    def _auth(self) -> Dict[str, str]:
        user_env = self.route.options.get("user_id_env", "PLAYHT_USER_ID")
        return self._headers(
            {
                "Authorization": f"Bearer {self.route.api_key() or ''}",
                "X-User-ID": os.getenv(user_env, ""),
                "Accept": "application/json",
            }
        )

    def invoke(self, request: SynthesisRequest, cancel: Optional[threading.Event] = None) -> str:
        voice = _voice(self.route.options, request.voice_id, PLAYHT_VOICES.get(request.voice_id, PLAYHT_VOICES["professional-female-sarah"]))
        response = self._send(
            "POST",
            self._url("/tts"),
            headers=self._auth(),
            json={
                "text": request.text,
                "voice": voice,
                "quality": "medium",
                "output_format": "mp3",
                "speed": 1.0,
                "sample_rate": 24000,
            },
        )
        job = self._object(response)
        audio_url = job.get("url")
        if not audio_url:
            job_id = self._dig(job, "id")

            def check() -> Optional[str]:
                status = self._object(self._send("GET", self._url(f"/tts/{job_id}"), headers=self._auth()))
                state = str(status.get("status", "")).lower()
                if state in _FAILED:
                    raise JobFailed(f"playht job {job_id} failed", backend=self.id)
                if state in _DONE:
                    return str(self._dig(status, "output", "url"))
                return None

            audio_url = self._poll(check, cancel=cancel)
        return self._persist(self._download(audio_url), kind="audio", suffix=".mp3")


class ElevenLabsBackend(HttpBackend):
    capability = "synthesis"

    def invoke(self, request: SynthesisRequest, cancel: Optional[threading.Event] = None) -> str:
        voice = _voice(self.route.options, request.voice_id, ELEVENLABS_DEFAULT_VOICE)
        response = self._send(
            "POST",
            self._url(f"/text-to-speech/{voice}"),
            headers=self._headers({"xi-api-key": self.route.api_key() or "", "Accept": "audio/mpeg"}),
            json={
                "text": request.text,
                "model_id": self.route.model or "eleven_monolingual_v1",
                "voice_settings": {"stability": 0.5, "similarity_boost": 0.5},
            },
        )
        if not response.content:
            raise MalformedPayload("elevenlabs returned no audio", backend=self.id)
        return self._persist(response.content, kind="audio", suffix=".mp3")


class AssemblyAIBackend(HttpBackend):
    capability = "recognition"

    def invoke(self, request: RecognitionRequest, cancel: Optional[threading.Event] = None) -> str:
        auth = self._headers({"authorization": self.route.api_key() or ""})
        upload = self._object(
            self._send(
                "POST",
                self._url("/upload"),
                headers={**auth, "Content-Type": "application/octet-stream"},
                content=request.audio,
            )
        )
        job = self._object(
            self._send(
                "POST",
                self._url("/transcript"),
                headers=auth,
                json={
                    "audio_url": self._dig(upload, "upload_url"),
                    "language_code": "en_us",
                    "punctuate": True,
                    "format_text": True,
                },
            )
        )
        job_id = self._dig(job, "id")

        def check() -> Optional[str]:
            status = self._object(self._send("GET", self._url(f"/transcript/{job_id}"), headers=auth))
            state = str(status.get("status", "")).lower()
            if state == "error":
                raise JobFailed(f"assemblyai job {job_id} failed: {status.get('error')}", backend=self.id)
            if state == "completed":
                return str(status.get("text") or "")
            return None

        text = self._poll(check, cancel=cancel)
        if not text.strip():
            raise MalformedPayload("assemblyai returned an empty transcript", backend=self.id)
        return text


class DeepgramBackend(HttpBackend):
    capability = "recognition"

    def invoke(self, request: RecognitionRequest, cancel: Optional[threading.Event] = None) -> str:
        response = self._send(
            "POST",
            self._url(self.route.endpoint or "/listen"),
            params={
                "model": self.route.model or "nova-2",
                "language": "en-US",
                "punctuate": "true",
                "smart_format": "true",
            },
            headers=self._headers(
                {"Authorization": f"Token {self.route.api_key() or ''}", "Content-Type": request.content_type}
            ),
            content=request.audio,
        )
        data = self._object(response)
        text = str(self._dig(data, "results", "channels", 0, "alternatives", 0, "transcript"))
        if not text.strip():
            raise MalformedPayload("deepgram returned an empty transcript", backend=self.id)
        return text


__all__ = [
    "AssemblyAIBackend",
    "DeepgramBackend",
    "ElevenLabsBackend",
    "PLAYHT_VOICES",
    "PlayHTBackend",
    "RecognitionRequest",
    "SynthesisRequest",
]
