from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from loguru import logger

from .config import Settings


class MissingCredentialError(RuntimeError):
    pass


@dataclass(frozen=True)
class GenerationRequest:
    system_instruction: str
    response_payload: str
    expect_structured_output: bool = False


@dataclass(frozen=True)
class GenerationResponse:
    text: str


class GenerationClient(Protocol):
    async def generate(self, request: GenerationRequest) -> GenerationResponse: ...


class OpenAIGenerationClient:
    def __init__(self, api_key: str, model: str, temperature: float = 0.4) -> None:
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self._llm: ChatOpenAI | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIGenerationClient":
        if not settings.openai_api_key:
            logger.warning("OPENAI_API_KEY is not set; every pipeline stage will fail until it is configured.")
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            temperature=settings.openai_temperature,
        )

    def _chat_model(self) -> ChatOpenAI:
        if not self.api_key:
            raise MissingCredentialError("OPENAI_API_KEY is not configured")
        if self._llm is None:
            self._llm = ChatOpenAI(
                api_key=self.api_key,
                model=self.model,
                temperature=self.temperature,
            )
        return self._llm

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        llm: Any = self._chat_model()
        if request.expect_structured_output:
            llm = llm.bind(response_format={"type": "json_object"})
        response = await llm.ainvoke(
            [
                SystemMessage(content=request.system_instruction),
                HumanMessage(content=request.response_payload),
            ]
        )
        raw_content = response.content
        if isinstance(raw_content, str):
            text = raw_content.strip()
        else:
            text = str(raw_content).strip()
        return GenerationResponse(text=text)
