"""Streaming chat completion loop with tool execution."""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Iterable

from openai import AsyncOpenAI

from aptomizer.chat.tools import ToolContext, ToolError, ToolRegistry

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = ToolError.user_message


async def _completion_step(
    client: AsyncOpenAI,
    model: str,
    conversation: list[dict[str, Any]],
    tools: list[dict[str, Any]],
    calls: dict[int, dict[str, str]],
) -> AsyncIterator[str]:
    """Stream one completion, yielding text and accumulating tool-call fragments into ``calls``."""

    stream = await client.chat.completions.create(model=model, messages=conversation, tools=tools, stream=True)
    async for chunk in stream:
        if not chunk.choices:
            continue
        delta = chunk.choices[0].delta
        if delta.content:
            yield delta.content
        for fragment in delta.tool_calls or []:
            slot = calls.setdefault(fragment.index, {"id": "", "name": "", "arguments": ""})
            if fragment.id:
                slot["id"] = fragment.id
            if fragment.function is not None:
                slot["name"] += fragment.function.name or ""
                slot["arguments"] += fragment.function.arguments or ""


async def stream_chat(
    client: AsyncOpenAI,
    *,
    model: str,
    system_prompt: str,
    messages: Iterable[dict[str, Any]],
    registry: ToolRegistry,
    context: ToolContext,
    max_steps: int = 5,
) -> AsyncIterator[str]:
    """Yield assistant text; failures end the stream with a fixed plain-text message."""

    conversation: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}, *messages]
    tools = registry.schemas()
    try:
        for step in range(max_steps):
            calls: dict[int, dict[str, str]] = {}
            streamed: list[str] = []
            async for text in _completion_step(client, model, conversation, tools, calls):
                streamed.append(text)
                yield text
            if not calls:
                return
            ordered = [calls[index] for index in sorted(calls)]
            conversation.append(
                {
                    "role": "assistant",
                    "content": "".join(streamed) or None,
                    "tool_calls": [
                        {
                            "id": call["id"],
                            "type": "function",
                            "function": {"name": call["name"], "arguments": call["arguments"]},
                        }
                        for call in ordered
                    ],
                }
            )
            for call in ordered:
                logger.info("Step %d: calling tool %s for user %s", step, call["name"], context.user_id)
                result = await registry.execute(call["name"], call["arguments"], context)
                conversation.append({"role": "tool", "tool_call_id": call["id"], "content": json.dumps(result)})
        logger.warning("Chat for user %s stopped after %d steps", context.user_id, max_steps)
    except ToolError as exc:
        logger.warning("Chat tool failure for user %s: %r", context.user_id, exc)
        yield exc.user_message
    except Exception:
        logger.exception("Chat completion failed for user %s", context.user_id)
        yield UNKNOWN_ERROR_MESSAGE


__all__ = ["UNKNOWN_ERROR_MESSAGE", "stream_chat"]
