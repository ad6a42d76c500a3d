"""Request builders and response parsers for the two provider wire formats.

Gateway requests use the OpenAI-style chat-completions body, with a forced
function call when an object result is expected. Direct Gemini requests use
``generateContent`` with the JSON shape described in the prompt text, since
that path has no native structured output.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Type

from pydantic import BaseModel


DEFAULT_IMAGE_MIME = "image/jpeg"
JSON_OBJECT_INSTRUCTION = (
    "Réponds UNIQUEMENT avec un objet JSON valide suivant ce schéma:"
)
REFERENCE_CONTEXT_HEADING = "DONNÉES DE RÉFÉRENCE (base AgroCamer):"
_ROLE_LABELS = {"user": "Utilisateur", "assistant": "Assistant"}

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")
_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[^,]*)?,", re.I)


class OutputKind(str, Enum):
    OBJECT = "object"
    TEXT = "text"
    ARRAY = "array"


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    parameters: Dict[str, Any]
    json_shape: str
    result_model: Optional[Type[BaseModel]] = None


@dataclass(frozen=True)
class ChatTurn:
    role: str
    content: str


@dataclass(frozen=True)
class AIRequest:
    system_prompt: str
    user_prompt: str = ""
    image: Optional[str] = field(default=None, repr=False)
    context: Optional[str] = None
    tool: Optional[ToolSpec] = None
    messages: Sequence[ChatTurn] = ()
    output: OutputKind = OutputKind.OBJECT
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


def to_data_uri(image: str, mime: str = DEFAULT_IMAGE_MIME) -> str:
    if image.startswith("data:"):
        return image
    return f"data:{mime};base64,{image}"


def strip_data_uri(image: str) -> str:
    if not image.startswith("data:"):
        return image
    _, _, payload = image.partition(",")
    return payload


def image_mime_type(image: str) -> str:
    match = _DATA_URI.match(image)
    if match and match.group("mime"):
        return match.group("mime").lower()
    return DEFAULT_IMAGE_MIME


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    if not text:
        return None
    match = _JSON_OBJECT.search(text)
    if not match:
        return None
    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return payload if isinstance(payload, dict) else None


def extract_json_array(text: Optional[str]) -> Optional[List[Any]]:
    if not text:
        return None
    match = _JSON_ARRAY.search(text)
    if not match:
        return None
    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return payload if isinstance(payload, list) else None


def _system_text(request: AIRequest) -> str:
    if not request.context:
        return request.system_prompt
    return f"{request.system_prompt}\n\n{REFERENCE_CONTEXT_HEADING}\n{request.context}"


def build_gateway_request(request: AIRequest, model: str) -> Dict[str, Any]:
    messages: List[Dict[str, Any]] = [
        {"role": "system", "content": _system_text(request)}
    ]
    for turn in request.messages:
        messages.append({"role": turn.role, "content": turn.content})
    if request.image:
        messages.append(
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": request.user_prompt},
                    {
                        "type": "image_url",
                        "image_url": {"url": to_data_uri(request.image)},
                    },
                ],
            }
        )
    elif request.user_prompt:
        messages.append({"role": "user", "content": request.user_prompt})

    body: Dict[str, Any] = {"model": model, "messages": messages}
    if request.max_tokens:
        body["max_tokens"] = request.max_tokens
    if request.temperature is not None:
        body["temperature"] = request.temperature
    if request.output is OutputKind.OBJECT and request.tool:
        body["tools"] = [
            {
                "type": "function",
                "function": {
                    "name": request.tool.name,
                    "description": request.tool.description,
                    "parameters": request.tool.parameters,
                },
            }
        ]
        body["tool_choice"] = {
            "type": "function",
            "function": {"name": request.tool.name},
        }
    return body


def build_direct_request(request: AIRequest) -> Dict[str, Any]:
    sections = [_system_text(request)]
    if request.messages:
        conversation = "\n\n".join(
            f"{_ROLE_LABELS.get(turn.role, turn.role.capitalize())}: {turn.content}"
            for turn in request.messages
        )
        sections.append(f"Conversation:\n{conversation}\n\nAssistant:")
    if request.user_prompt:
        sections.append(request.user_prompt)
    if request.output is OutputKind.OBJECT and request.tool:
        sections.append(f"{JSON_OBJECT_INSTRUCTION}\n{request.tool.json_shape}")

    parts: List[Dict[str, Any]] = [{"text": "\n\n".join(sections)}]
    if request.image:
        parts.append(
            {
                "inline_data": {
                    "mime_type": image_mime_type(request.image),
                    "data": strip_data_uri(request.image),
                }
            }
        )
    temperature = 0.4 if request.temperature is None else request.temperature
    return {
        "contents": [{"parts": parts}],
        "generationConfig": {
            "temperature": temperature,
            "topK": 32,
            "topP": 1,
            "maxOutputTokens": request.max_tokens or 4096,
        },
    }


def _first(value: Any) -> Any:
    if isinstance(value, list) and value:
        return value[0]
    return None


def _get(value: Any, key: str) -> Any:
    if isinstance(value, dict):
        return value.get(key)
    return None


def _tag_provenance(payload: Dict[str, Any]) -> Dict[str, Any]:
    tagged = dict(payload)
    tagged["from_database"] = False
    return tagged


def _gateway_message(data: Any) -> Any:
    return _get(_first(_get(data, "choices")), "message")


def parse_gateway_tool_call(data: Any) -> Optional[Dict[str, Any]]:
    tool_call = _first(_get(_gateway_message(data), "tool_calls"))
    arguments = _get(_get(tool_call, "function"), "arguments")
    if isinstance(arguments, dict):
        return _tag_provenance(arguments)
    if not isinstance(arguments, str) or not arguments.strip():
        return None
    try:
        payload = json.loads(arguments)
    except json.JSONDecodeError:
        return None
    return _tag_provenance(payload) if isinstance(payload, dict) else None


def parse_gateway_text(data: Any) -> Optional[str]:
    content = _get(_gateway_message(data), "content")
    if isinstance(content, str) and content.strip():
        return content.strip()
    return None


def parse_direct_text(data: Any) -> Optional[str]:
    candidate = _first(_get(data, "candidates"))
    part = _first(_get(_get(candidate, "content"), "parts"))
    text = _get(part, "text")
    if isinstance(text, str) and text.strip():
        return text.strip()
    return None


def parse_direct_json(data: Any) -> Optional[Dict[str, Any]]:
    payload = extract_json_object(parse_direct_text(data))
    return _tag_provenance(payload) if payload is not None else None


def parse_gateway_response(data: Any, request: AIRequest) -> Optional[Any]:
    if request.output is OutputKind.OBJECT:
        return parse_gateway_tool_call(data)
    text = parse_gateway_text(data)
    if request.output is OutputKind.ARRAY:
        return extract_json_array(text)
    return text


def parse_direct_response(data: Any, request: AIRequest) -> Optional[Any]:
    if request.output is OutputKind.OBJECT:
        return parse_direct_json(data)
    text = parse_direct_text(data)
    if request.output is OutputKind.ARRAY:
        return extract_json_array(text)
    return text
