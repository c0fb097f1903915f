"""
AI Client: vision model behind an OpenAI-compatible API
=======================================================
Only used when ORACLE_BACKEND=vision. Any server speaking the OpenAI chat
completions protocol with image input works (OpenAI, a local vLLM/MLX server, ...).
"""

import base64
import logging

from openai import OpenAI

from .config import settings

logger = logging.getLogger(__name__)

VISION_MODEL = settings.VISION_MODEL

_vision_client: OpenAI | None = None


def _get_vision() -> OpenAI:
    global _vision_client
    if _vision_client is None:
        _vision_client = OpenAI(
            api_key=settings.VISION_API_KEY or "local",
            base_url=settings.VISION_BASE_URL,
        )
    return _vision_client


def _image_part(image: bytes, mime: str = "image/jpeg") -> dict:
    encoded = base64.b64encode(image).decode("ascii")
    return {"type": "image_url", "image_url": {"url": f"data:{mime};base64,{encoded}"}}


def chat_with_image(
    prompt: str,
    image: bytes,
    system: str = "",
    model: str = VISION_MODEL,
    max_tokens: int = 512,
    temperature: float = 0.0,
) -> str:
    """Single user turn with one attached image. Returns the reply text."""
    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({
        "role": "user",
        "content": [{"type": "text", "text": prompt}, _image_part(image)],
    })

    logger.debug("vision request → %s", model)
    response = _get_vision().chat.completions.create(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
    )
    return response.choices[0].message.content or ""
