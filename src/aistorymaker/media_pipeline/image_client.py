from __future__ import annotations

import abc
import hashlib
import logging
import random
import re
import time
from typing import Mapping

import requests

logger = logging.getLogger(__name__)


class ImageGenerationError(RuntimeError):
    """Raised when the image API fails or returns no image URL."""


class ImageClient(abc.ABC):
    """Turns a finished prompt into a hosted image URL."""

    @abc.abstractmethod
    def generate(self, prompt: str) -> str:
        raise NotImplementedError


class DryRunImageClient(ImageClient):
    """Offline client returning deterministic fake URLs."""

    def __init__(self, base_url: str = "https://images.invalid/dry-run") -> None:
        self.base_url = base_url.rstrip("/")
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        digest = hashlib.sha1(prompt.encode("utf-8")).hexdigest()[:12]
        logger.info("Image dry run: skipping render for prompt %s", digest)
        return f"{self.base_url}/{len(self.prompts)}-{digest}.png"


class OpenAIImageClient(ImageClient):
    """Thin wrapper around the OpenAI Images API (DALL-E 3)."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "dall-e-3",
        size: str = "1024x1024",
        quality: str = "hd",
        style: str = "vivid",
        request_timeout: float = 120.0,
        retries: int = 2,
        backoff: float = 5.0,
        base_url: str = "https://api.openai.com/v1",
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.size = size
        self.quality = quality
        self.style = style
        self.request_timeout = request_timeout
        self.retries = max(1, retries)
        self.backoff = backoff
        self.base_url = base_url.rstrip("/")

    def generate(self, prompt: str) -> str:
        payload = self._generate_with_retry(prompt)
        data = payload.get("data") or []
        url = data[0].get("url") if data and isinstance(data[0], dict) else None
        if not url:
            raise ImageGenerationError("Image response missing url")
        return url

    # Internal helpers -------------------------------------------------

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            raise ImageGenerationError("OpenAI API key not configured")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _generate_with_retry(self, prompt: str) -> dict:
        last_error: Exception | None = None
        for attempt in range(1, self.retries + 1):
            try:
                return self._create_image(prompt)
            except requests.HTTPError as exc:  # pragma: no cover - network path
                status = exc.response.status_code if exc.response is not None else None
                last_error = exc
                if status and status >= 500 and attempt < self.retries:
                    logger.warning(
                        "Image request failed with %s; retrying in %ss (attempt %s/%s)",
                        status,
                        self.backoff,
                        attempt,
                        self.retries,
                    )
                    time.sleep(self.backoff)
                    continue
                break
        if last_error:
            raise ImageGenerationError(f"Image request failed: {last_error}") from last_error
        raise ImageGenerationError("Image request failed")

    def _create_image(self, prompt: str) -> dict:
        payload = {
            "model": self.model,
            "prompt": prompt,
            "n": 1,
            "size": self.size,
            "quality": self.quality,
            "style": self.style,
        }
        response = requests.post(
            f"{self.base_url}/images/generations",
            headers=self._headers(),
            json=payload,
            timeout=self.request_timeout,
        )
        if response.status_code >= 400:
            logger.error("Image generation failed (%s): %s", response.status_code, response.text)
        response.raise_for_status()
        self._respect_rate_limits(response.headers)
        return response.json()

    def _respect_rate_limits(self, headers: Mapping[str, str] | None) -> None:
        if not headers:
            return
        lower = {k.lower(): v for k, v in headers.items()}
        remaining = lower.get("x-ratelimit-remaining-requests")
        reset = lower.get("x-ratelimit-reset-requests")
        try:
            if remaining is not None and float(remaining) <= 0 and reset:
                sleep_seconds = parse_reset(reset)
                if sleep_seconds > 0:
                    jitter = random.uniform(0, 0.5)
                    logger.debug("Rate limit hit; sleeping %.2fs", sleep_seconds + jitter)
                    time.sleep(sleep_seconds + jitter)
        except ValueError:
            return


def parse_reset(value: str) -> float:
    """Convert a rate-limit reset header ("1m30s", "0.5s", "12") to seconds."""
    if not value:
        return 0.0
    total = 0.0
    for amount, unit in re.findall(r"(\d+(?:\.\d+)?)(ms|[hms])", value):
        val = float(amount)
        if unit == "h":
            total += val * 3600
        elif unit == "m":
            total += val * 60
        elif unit == "ms":
            total += val / 1000
        else:
            total += val
    if total == 0.0:
        try:
            total = float(value)
        except ValueError:
            return 0.0
    return total
