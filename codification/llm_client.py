import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from openai import OpenAI, APIConnectionError, APIStatusError
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from codification.settings import ModelConfig, TOGETHER_API_KEY_ENV

logger = logging.getLogger("codification")


class ConfigurationError(RuntimeError):
    """No credential is configured for the model gateway."""


class UpstreamError(RuntimeError):
    """
    The model endpoint answered with a non-success response (or not at all).
    status_code and body are kept verbatim for operators chasing quota/outage issues.
    """

    def __init__(self, status_code: Optional[int], body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Model gateway error: status={status_code} body={body}")


@dataclass(frozen=True)
class GatewayResponse:
    raw_text: str
    tokens_used: int
    elapsed_ms: int


def get_api_key(explicit: Optional[str] = None) -> str:
    api_key = explicit or os.getenv(TOGETHER_API_KEY_ENV)
    if not api_key:
        raise ConfigurationError(f"{TOGETHER_API_KEY_ENV} environment variable is not set")
    return api_key


class SmartPassLlmClient:
    """
    Chat-completion gateway for the smart pass:

        response = client.invoke(prompt, system_prompt)

    Talks to any OpenAI-compatible endpoint (Together.ai by default) through the openai SDK.
    """

    def __init__(
        self,
        model_config: ModelConfig | None = None,
        *,
        api_key: Optional[str] = None,
        client: Any = None,
    ):
        self.model_config = model_config or ModelConfig.from_env()
        self.model_name = self.model_config.model_name

        if client is not None:
            self._client = client
            return

        client_kwargs: Dict[str, Any] = {
            "api_key": get_api_key(api_key),
            "base_url": self.model_config.base_url,
            "max_retries": 0,
        }
        if self.model_config.timeout is not None:
            client_kwargs["timeout"] = self.model_config.timeout
        self._client = OpenAI(**client_kwargs)

    @staticmethod
    def _total_tokens(resp: Any) -> int:
        usage = getattr(resp, "usage", None)
        if usage is None:
            return 0
        return int(getattr(usage, "total_tokens", 0) or 0)

    @staticmethod
    def _to_openai_messages(messages: List[BaseMessage]) -> List[Dict[str, str]]:
        return [
            {"role": "system" if isinstance(m, SystemMessage) else "user", "content": str(m.content)}
            for m in messages
        ]

    def invoke(self, prompt: str, system_prompt: str) -> GatewayResponse:
        """
        Single synchronous chat call, no retries. Transport failures and non-success
        responses come back as UpstreamError.
        """
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=prompt)]
        start = time.time()
        try:
            resp = self._client.chat.completions.create(
                model=self.model_name,
                messages=self._to_openai_messages(messages),
                temperature=self.model_config.temperature,
                max_tokens=self.model_config.max_tokens,
            )
        except APIStatusError as e:
            raise UpstreamError(e.status_code, e.response.text) from e
        except APIConnectionError as e:
            raise UpstreamError(None, str(e)) from e

        choices = getattr(resp, "choices", None)
        if not choices:
            raise UpstreamError(200, "No choices in model response")

        elapsed_ms = int((time.time() - start) * 1000)
        logger.debug(f"[LLM] {self.model_name} answered in {elapsed_ms} ms")
        return GatewayResponse(
            raw_text=getattr(choices[0].message, "content", "") or "",
            tokens_used=self._total_tokens(resp),
            elapsed_ms=elapsed_ms,
        )
