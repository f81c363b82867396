"""Response shape of the generative-text backend (Gemini ``generateContent``).

Only the fields the summary provider reads are modelled; everything else in
the payload is ignored.
"""

from __future__ import annotations

from pydantic import BaseModel


class GeminiPart(BaseModel):
    text: str = ""


class GeminiContent(BaseModel):
    parts: list[GeminiPart] = []


class GeminiCandidate(BaseModel):
    content: GeminiContent | None = None


class GeminiResponse(BaseModel):
    candidates: list[GeminiCandidate] = []

    def first_text(self) -> str | None:
        """Return ``candidates[0].content.parts[0].text`` if present and non-blank."""
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None or not content.parts:
            return None
        text = content.parts[0].text.strip()
        return text or None
