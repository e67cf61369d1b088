from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Union

from agent_relay.schemas.messages import (
    TOOL_CHOICE_NONE,
    USER_ROLE,
    ModelMessage,
    ModelReply,
    ToolCall,
)
from agent_relay.utils.text import remove_think_tags

ToolChoice = Union[str, Dict[str, Any]]


class ModelService(ABC):
    """Lightweight interface so agents can swap between real and stub models."""

    @abstractmethod
    def generate(
        self,
        messages: Sequence[ModelMessage],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[ToolChoice] = None,
        stream: bool = False,
    ) -> Union[ModelReply, Iterator[str]]:
        """Return a reply, or a lazy sequence of text fragments when streaming."""


class OpenAIModelService(ModelService):
    """Chat-completions backend for any OpenAI-compatible endpoint."""

    def __init__(
        self,
        client: Any,
        model: str,
        temperature: Optional[float] = None,
        reply_hook: Optional[Callable[[str], str]] = None,
        preserve_think_tags: bool = False,
    ) -> None:
        self.client = client
        self.model = model
        self.temperature = temperature
        self.reply_hook = reply_hook
        self.preserve_think_tags = preserve_think_tags

    @classmethod
    def from_settings(cls, config: Any, **kwargs: Any) -> "OpenAIModelService":
        from openai import OpenAI

        client = OpenAI(
            base_url=config.base_url,
            api_key=os.environ.get(config.api_key_env),
        )
        return cls(
            client=client,
            model=config.model,
            temperature=config.temperature,
            preserve_think_tags=config.preserve_think_tags,
            **kwargs,
        )

    def generate(
        self,
        messages: Sequence[ModelMessage],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[ToolChoice] = None,
        stream: bool = False,
    ) -> Union[ModelReply, Iterator[str]]:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_dict() for m in messages],
        }
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = tool_choice or TOOL_CHOICE_NONE

        if stream:
            return self._stream(kwargs)

        response = self.client.chat.completions.create(**kwargs)
        message = response.choices[0].message
        content = message.content or ""
        if not self.preserve_think_tags:
            content = remove_think_tags(content)
        if self.reply_hook:
            content = self.reply_hook(content)

        return ModelReply(
            content=content,
            tool_calls=tuple(
                ToolCall(
                    id=tc.id,
                    name=tc.function.name,
                    arguments=tc.function.arguments or "{}",
                )
                for tc in message.tool_calls or ()
            ),
        )

    def _stream(self, kwargs: Dict[str, Any]) -> Iterator[str]:
        for chunk in self.client.chat.completions.create(stream=True, **kwargs):
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                yield delta


class EchoModelService(ModelService):
    """Offline stand-in that repeats the newest user message."""

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix

    def generate(
        self,
        messages: Sequence[ModelMessage],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[ToolChoice] = None,
        stream: bool = False,
    ) -> Union[ModelReply, Iterator[str]]:
        latest = next(
            (m.content for m in reversed(messages) if m.role == USER_ROLE),
            None,
        )
        content = f"{self.prefix}{latest or ''}"
        if stream:
            return iter([content])
        return ModelReply(content=content)
