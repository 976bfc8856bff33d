"""
Output Extraction

Pulls the user-facing text (or a JSON payload) out of the terminal message
of an agent run. Message content may be a plain string or a list of typed
parts; only textual parts are kept. These helpers never raise.
"""

import json
import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

logger = logging.getLogger(__name__)

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.IGNORECASE | re.DOTALL)


def _part_text(part: Any) -> str | None:
    if isinstance(part, str):
        return part
    if isinstance(part, Mapping):
        text = part.get("text")
    else:
        text = getattr(part, "text", None)
    return text if isinstance(text, str) else None


def extract_text_content(content: Any) -> str:
    """
    Flatten message content into text.

    Args:
        content: A string, or a sequence of parts where a part is a string or
            carries a string ``text`` (mapping key or attribute)

    Returns:
        The trimmed text; text parts are joined with single spaces. Empty
        string when nothing textual is present.
    """
    if isinstance(content, str):
        return content.strip()
    if not isinstance(content, Sequence) or isinstance(content, (bytes, bytearray)):
        return ""

    texts = []
    for part in content:
        text = _part_text(part)
        if text is not None and text.strip():
            texts.append(text.strip())
    return " ".join(texts).strip()


def extract_final_text(result: Any) -> str:
    """
    Extract the final answer from an agent run.

    Args:
        result: An AgentRunResult-like object with ``messages``, or the
            message list itself

    Returns:
        Text of the last message, or "" when there is none
    """
    messages = getattr(result, "messages", result)
    if not isinstance(messages, Sequence) or isinstance(messages, str) or not messages:
        return ""

    last = messages[-1]
    if isinstance(last, Mapping):
        content = last.get("content")
    else:
        content = getattr(last, "content", None)
    return extract_text_content(content)


def extract_json_payload(text: str) -> Any | None:
    """
    Pull the first JSON object or array out of a model reply.

    Accepts bare JSON, JSON inside ```json fences, or JSON surrounded by
    prose. Returns None when nothing decodes.
    """
    if not text:
        return None

    candidates = [match.group(1) for match in _JSON_FENCE_RE.finditer(text)]
    candidates.append(text)

    decoder = json.JSONDecoder()
    for candidate in candidates:
        candidate = candidate.strip()
        for index, char in enumerate(candidate):
            if char not in "[{":
                continue
            try:
                payload, _ = decoder.raw_decode(candidate, index)
            except json.JSONDecodeError:
                continue
            return payload

    logger.debug("No JSON payload found in model reply", extra={"length": len(text)})
    return None
