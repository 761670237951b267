"""Configuration and environment loader for the documentation transformer.

This module provides OpenAIConfig, which loads, validates, and exposes the
configuration required by :class:`~src.pipeline.doc_rewriter.client.AIAPIClient`
to reach an OpenAI or Azure OpenAI chat-completions endpoint.

Role in Architecture
--------------------
- Forms the boundary between the process environment (shell, CI, `.env`)
  and the transformer's runtime config.
- Provides a single source of truth for the endpoint URI, credentials,
  retries/backoff and rate limiting.
- The pipeline core never reads this module; it only receives a transformer.

Examples
--------
>>> import os
>>> os.environ["API_KEY"] = "unit-test"
>>> from src.pipeline.doc_rewriter.config import OpenAIConfig
>>> cfg = OpenAIConfig()
>>> cfg.chat_endpoint.endswith("/chat/completions")
True
"""

import os
from pathlib import Path

from dotenv import load_dotenv

import src.config as _project_config
from src.config import DEFAULT_MODEL_NAME, DEFAULT_OPENAI_BASE_URL

DEFAULT_AZURE_API_VERSION = "2024-05-01-preview"


class OpenAIConfig:
    r"""Configuration loader and validator for OpenAI/Azure service parameters.

    Attributes
    ----------
    api_key : str
        Key used to authenticate with the service.
    is_azure : bool
        True when Azure OpenAI credentials were configured.
    model : str
        Model name (OpenAI) or deployment name (Azure).
    chat_endpoint : str
        Complete URI that chat-completion requests are posted to.
    target_rpm : int
        Target requests per minute for client-side rate limiting.
    max_retries : int
        Maximum retries for transient request errors.
    backoff_factor : float
        Exponential backoff base between retries.
    retry_sleep_on_429 : int
        Seconds to sleep on HTTP 429, multiplied by the attempt number.
    temperature : float
        Sampling temperature.
    request_timeout : int
        Timeout (seconds) for one request.

    Raises
    ------
    ValueError
        If no API key is configured, or Azure credentials are set without an
        endpoint base.

    Notes
    -----
    A `.env` file in the project root is loaded with ``override=True`` so it
    is authoritative during process startup and in tests that create one.
    """

    def __init__(self) -> None:
        env_path = Path(_project_config.PROJECT_ROOT) / ".env"
        if env_path.exists():
            load_dotenv(env_path, override=True)

        openai_key = os.getenv("API_KEY") or os.getenv("OPENAI_API_KEY")
        azure_key = os.getenv("AZURE_API_KEY")
        self.api_key: str = openai_key or azure_key or ""
        if not self.api_key:
            raise ValueError("Missing API key for OpenAI/Azure OpenAI configuration")

        self.endpoint_base: str | None = os.getenv("AZURE_ENDPOINT_BASE")
        self.is_azure = bool(azure_key and not openai_key)
        if self.is_azure and not self.endpoint_base:
            raise ValueError(
                "Missing AZURE_ENDPOINT_BASE for Azure OpenAI configuration"
            )

        self.model: str = os.getenv("OPENAI_MODEL", DEFAULT_MODEL_NAME)
        self.api_version: str = os.getenv(
            "AZURE_API_VERSION", DEFAULT_AZURE_API_VERSION
        )
        self.base_url: str = os.getenv("OPENAI_BASE_URL", DEFAULT_OPENAI_BASE_URL)
        self.max_concurrent_requests = int(os.getenv("MAX_CONCURRENT_REQUESTS", 5))
        self.target_rpm = int(os.getenv("TARGET_RPM", 500))
        self.max_retries = int(os.getenv("MAX_RETRIES", 3))
        self.backoff_factor = float(os.getenv("BACKOFF_FACTOR", 2.0))
        self.retry_sleep_on_429 = int(os.getenv("RETRY_SLEEP_ON_429", 60))
        self.temperature = float(os.getenv("TEMPERATURE", 0.10))
        self.request_timeout = int(os.getenv("REQUEST_TIMEOUT", 300))

        if self.is_azure:
            self.chat_endpoint = f"{str(self.endpoint_base).rstrip('/')}/openai/deployments/{self.model}/chat/completions?api-version={self.api_version}"
        else:
            self.chat_endpoint = f"{self.base_url.rstrip('/')}/chat/completions"

    def auth_headers(self) -> dict[str, str]:
        """Return the authentication header expected by the configured service."""
        if self.is_azure:
            return {"api-key": self.api_key}
        return {"Authorization": f"Bearer {self.api_key}"}
