"""Text generation backends (Gemini first, OpenAI-compatible chat second)."""
from __future__ import annotations

import threading
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .http import HttpBackend

Purpose = Literal["welcome", "reply", "closing"]


class GenerationRequest(BaseModel):
    purpose: Purpose = "reply"
    prompt: str
    system_prompt: str = ""
    context: List[Dict[str, str]] = Field(default_factory=list)
    persona_name: str = "Sarah"
    candidate_name: str = ""
    position: str = ""
    final_score: Optional[float] = None
    max_tokens: int = 300
    temperature: float = 0.7


class GeminiBackend(HttpBackend):
    capability = "generation"

    def invoke(self, request: GenerationRequest, cancel: Optional[threading.Event] = None) -> str:
        model = self.route.model or "gemini-1.5-flash"
        contents = [
            {"role": "model" if message["role"] == "assistant" else "user", "parts": [{"text": message["content"]}]}
            for message in request.context
        ]
        contents.append({"role": "user", "parts": [{"text": request.prompt}]})
        body: Dict[str, object] = {
            "contents": contents,
            "generationConfig": {"temperature": request.temperature, "maxOutputTokens": request.max_tokens},
        }
        if request.system_prompt:
            body["systemInstruction"] = {"parts": [{"text": request.system_prompt}]}
        response = self._send(
            "POST",
            self._url(self.route.endpoint or f"/models/{model}:generateContent"),
            params={"key": self.route.api_key() or ""},
            headers=self._headers({"Content-Type": "application/json"}),
            json=body,
        )
        data = self._object(response)
        return str(self._dig(data, "candidates", 0, "content", "parts", 0, "text")).strip()


class OpenAIChatBackend(HttpBackend):
    capability = "generation"

    def invoke(self, request: GenerationRequest, cancel: Optional[threading.Event] = None) -> str:
        messages: List[Dict[str, str]] = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.extend({"role": m["role"], "content": m["content"]} for m in request.context)
        messages.append({"role": "user", "content": request.prompt})
        response = self._send(
            "POST",
            self._url(self.route.endpoint or "/chat/completions"),
            headers=self._headers({"Authorization": f"Bearer {self.route.api_key() or ''}"}),
            json={
                "model": self.route.model or "gpt-3.5-turbo",
                "messages": messages,
                "max_tokens": request.max_tokens,
                "temperature": request.temperature,
            },
        )
        data = self._object(response)
        return str(self._dig(data, "choices", 0, "message", "content")).strip()


__all__ = ["GeminiBackend", "GenerationRequest", "OpenAIChatBackend", "Purpose"]
