"""Generative capability adapter.

Provider-agnostic via LiteLLM. Every stage of the analysis pipeline talks to
the model through ``GenerativeClient`` and gets back either usable output or a
``ModelFailure``; nothing else leaks out of this module.

Three call shapes:
    generate_text        -- free text (transcription)
    generate_structured  -- JSON validated against a pydantic model
    generate_image       -- image output modality (rectification)
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..core.circuit_breaker import CircuitBreakerOpen, call_with_timeout
from ..core.config import settings
from ..exceptions import ModelFailure, ValidationFailure

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

# Models sometimes wrap JSON in a markdown fence despite json response format.
_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


@dataclass(frozen=True)
class GenerativeContent:
    """What the model is asked about: text, an image, a file, or a mix."""

    text: Optional[str] = None
    image_data_uri: Optional[str] = None
    file_data_uri: Optional[str] = None

    def to_parts(self) -> list[dict[str, Any]]:
        parts: list[dict[str, Any]] = []
        if self.image_data_uri:
            parts.append({"type": "image_url", "image_url": {"url": self.image_data_uri}})
        if self.file_data_uri:
            parts.append({"type": "file", "file": {"file_data": self.file_data_uri}})
        if self.text:
            parts.append({"type": "text", "text": f"Document text:\n---\n{self.text}\n---"})
        return parts

    def is_empty(self) -> bool:
        return not (self.text or self.image_data_uri or self.file_data_uri)


def _strip_fence(text: str) -> str:
    match = _FENCE_RE.match(text.strip())
    return match.group(1) if match else text.strip()


def _field(obj: Any, name: str) -> Any:
    """Read *name* from a LiteLLM response object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class GenerativeClient:
    """Calls the configured models through LiteLLM with breaker + timeout."""

    def __init__(
        self,
        vision_model: str,
        text_model: str,
        image_model: str,
        api_key: str = "",
        api_base: str = "",
        timeout: float = 60,
    ) -> None:
        self.vision_model = vision_model
        self.text_model = text_model
        self.image_model = image_model
        self._api_key = api_key
        self._api_base = api_base
        self._timeout = timeout

    @classmethod
    def from_settings(cls) -> "GenerativeClient":
        return cls(
            vision_model=settings.vision_model,
            text_model=settings.text_model,
            image_model=settings.image_model,
            api_key=settings.model_api_key,
            api_base=settings.model_api_base,
            timeout=settings.model_timeout_seconds,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate_text(self, instruction: str, content: GenerativeContent) -> str:
        """Free-text answer, stripped. Empty string when the model said nothing."""
        message = self._complete(self.text_model, instruction, content)
        text = _field(message, "content")
        if not isinstance(text, str):
            return ""
        return text.strip()

    def generate_structured(
        self,
        instruction: str,
        content: GenerativeContent,
        schema: Type[SchemaT],
    ) -> SchemaT:
        """JSON answer validated against *schema*.

        Raises:
            ModelFailure: empty answer or unreachable model.
            ValidationFailure: answer is not JSON of the requested shape.
        """
        message = self._complete(
            self.vision_model,
            instruction,
            content,
            response_format={"type": "json_object"},
        )
        raw = _field(message, "content")
        if not isinstance(raw, str) or not raw.strip():
            raise ModelFailure("Model returned an empty response", model=self.vision_model)

        try:
            return schema.model_validate_json(_strip_fence(raw))
        except PydanticValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            field_name = ".".join(str(p) for p in first.get("loc", ())) or None
            logger.warning(
                "Structured output failed validation",
                extra={"schema": schema.__name__, "model": self.vision_model, "error_count": e.error_count()},
            )
            raise ValidationFailure(
                f"Model output does not match {schema.__name__}: {first.get('msg', 'invalid')}",
                field=field_name,
            ) from e

    def generate_image(self, instruction: str, content: GenerativeContent) -> Optional[str]:
        """Image answer as a data URI, or None when the model sent no image."""
        message = self._complete(
            self.image_model,
            instruction,
            content,
            modalities=["image", "text"],
        )
        for image in _field(message, "images") or []:
            image_url = _field(image, "image_url")
            url = _field(image_url, "url") if image_url is not None else None
            if isinstance(url, str) and url:
                return url
        return None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _complete(self, model: str, instruction: str, content: GenerativeContent, **extra: Any) -> Any:
        """One chat completion; returns the first choice's message."""
        if content.is_empty():
            raise ModelFailure("Nothing to send to the model", model=model)

        messages = [
            {
                "role": "user",
                "content": [{"type": "text", "text": instruction}, *content.to_parts()],
            }
        ]
        kwargs: dict = {
            "model": model,
            "messages": messages,
            "timeout": self._timeout,
            **extra,
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base

        def _call():
            import litellm

            return litellm.completion(**kwargs)

        start = time.monotonic()
        try:
            response = call_with_timeout(_call, timeout=self._timeout, endpoint=model)
        except CircuitBreakerOpen as e:
            raise ModelFailure(str(e), model=model) from e
        except TimeoutError as e:
            raise ModelFailure(f"Model call timed out after {self._timeout}s", model=model) from e
        except Exception as e:
            logger.exception("Model call failed", extra={"model": model})
            raise ModelFailure(f"Model call failed: {type(e).__name__}", model=model) from e

        logger.debug(
            "Model call completed",
            extra={"model": model, "duration_ms": round((time.monotonic() - start) * 1000, 1)},
        )

        choices = _field(response, "choices") or []
        if not choices:
            raise ModelFailure("Model returned no choices", model=model)
        return _field(choices[0], "message") or {}
