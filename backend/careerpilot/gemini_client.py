"""Thin async client for the Gemini ``generateContent`` REST endpoint.

``LLMClient`` is the seam the analysis, interview and agent flows depend on;
``GeminiClient`` is the production implementation. Tests substitute their
own ``LLMClient``.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Type

import httpx
from pydantic import BaseModel

from .config import GEMINI_API_BASE, GEMINI_API_KEY, GEMINI_MODEL, GEMINI_TIMEOUT
from .errors import MalformedModelOutput, ModelCallFailed
from .log import get_logger
from .models import ConversationTurn

logger = get_logger("gemini")

_SCHEMA_KEYS = ("description", "enum", "minimum", "maximum", "minItems", "maxItems", "format")


@dataclass
class ToolDefinition:
    name: str
    description: str
    parameters: Type[BaseModel]


@dataclass
class ToolCall:
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LLMResponse:
    text: str = ""
    data: Optional[Dict[str, Any]] = None
    tool_call: Optional[ToolCall] = None


class LLMClient:
    """Prompt (and optional schema / tools) in, structured result or tool call out."""

    async def generate(
        self,
        prompt: str,
        output_schema: Optional[Type[BaseModel]] = None,
        *,
        system: Optional[str] = None,
        history: Optional[Sequence[ConversationTurn]] = None,
        tools: Optional[Sequence[ToolDefinition]] = None,
    ) -> LLMResponse:
        raise NotImplementedError


def to_gemini_schema(model: Type[BaseModel]) -> Dict[str, Any]:
    """Convert a pydantic model's JSON schema to Gemini's OpenAPI subset."""
    raw = model.model_json_schema()
    defs = raw.get("$defs", {})

    def convert(node: Dict[str, Any]) -> Dict[str, Any]:
        if "$ref" in node:
            return convert(defs[node["$ref"].split("/")[-1]])
        if "anyOf" in node:
            variants = [v for v in node["anyOf"] if v.get("type") != "null"]
            out = convert(variants[0])
            if len(variants) < len(node["anyOf"]):
                out["nullable"] = True
            if "description" in node:
                out["description"] = node["description"]
            return out

        out: Dict[str, Any] = {}
        if "type" in node:
            out["type"] = node["type"].upper()
        for key in _SCHEMA_KEYS:
            if key in node:
                out[key] = node[key]
        if "items" in node:
            out["items"] = convert(node["items"])
        if "properties" in node:
            out["properties"] = {k: convert(v) for k, v in node["properties"].items()}
            out["propertyOrdering"] = list(node["properties"])
            if node.get("required"):
                out["required"] = node["required"]
        return out

    return convert(raw)


def _strip_fences(text: str) -> str:
    return text.replace("```json", "").replace("```", "").strip()


class GeminiClient(LLMClient):
    # One extra attempt for transport failures and 5xx responses.
    max_attempts = 2

    def __init__(
        self,
        api_key: str = GEMINI_API_KEY,
        model: str = GEMINI_MODEL,
        base_url: str = GEMINI_API_BASE,
        timeout: float = GEMINI_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.endpoint = f"{base_url.rstrip('/')}/{model}:generateContent"
        self.timeout = timeout
        self._transport = transport

    def build_payload(
        self,
        prompt: str,
        output_schema: Optional[Type[BaseModel]] = None,
        system: Optional[str] = None,
        history: Optional[Sequence[ConversationTurn]] = None,
        tools: Optional[Sequence[ToolDefinition]] = None,
    ) -> Dict[str, Any]:
        contents = [
            {"role": turn.role, "parts": [{"text": turn.content}]}
            for turn in (history or [])
        ]
        contents.append({"role": "user", "parts": [{"text": prompt}]})
        payload: Dict[str, Any] = {"contents": contents}
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}
        if output_schema is not None:
            payload["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": to_gemini_schema(output_schema),
            }
        if tools:
            payload["tools"] = [{
                "functionDeclarations": [
                    {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": to_gemini_schema(tool.parameters),
                    }
                    for tool in tools
                ]
            }]
        return payload

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        last_error = ""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            for attempt in range(1, self.max_attempts + 1):
                try:
                    resp = await client.post(
                        self.endpoint,
                        headers=headers,
                        json=payload,
                        params={"key": self.api_key},
                    )
                except httpx.TransportError as e:
                    last_error = f"transport error: {e}"
                    logger.warning("Gemini call attempt %d failed: %s", attempt, last_error)
                    continue

                if resp.status_code >= 500:
                    last_error = f"HTTP {resp.status_code}"
                    logger.warning("Gemini call attempt %d failed: %s", attempt, last_error)
                    continue
                if resp.status_code >= 400:
                    logger.error("Gemini rejected request: HTTP %d %s", resp.status_code, resp.text[:300])
                    raise ModelCallFailed(f"The language model rejected the request (HTTP {resp.status_code}).")
                try:
                    return resp.json()
                except ValueError as e:
                    raise ModelCallFailed("The language model returned a non-JSON response.") from e

        raise ModelCallFailed(f"The language model could not be reached ({last_error}).")

    async def generate(
        self,
        prompt: str,
        output_schema: Optional[Type[BaseModel]] = None,
        *,
        system: Optional[str] = None,
        history: Optional[Sequence[ConversationTurn]] = None,
        tools: Optional[Sequence[ToolDefinition]] = None,
    ) -> LLMResponse:
        if not self.api_key:
            raise ModelCallFailed("Gemini API key not configured.")

        payload = self.build_payload(prompt, output_schema, system, history, tools)
        data = await self._post(payload)

        candidates = data.get("candidates") or []
        if not candidates:
            reason = (data.get("promptFeedback") or {}).get("blockReason", "no candidates")
            raise ModelCallFailed(f"The language model returned no answer ({reason}).")
        parts: List[Dict[str, Any]] = (candidates[0].get("content") or {}).get("parts") or []

        for part in parts:
            call = part.get("functionCall")
            if call:
                return LLMResponse(tool_call=ToolCall(name=call.get("name", ""), args=call.get("args") or {}))

        text = "".join(part.get("text", "") for part in parts).strip()
        if output_schema is None:
            return LLMResponse(text=text)

        try:
            parsed = json.loads(_strip_fences(text))
        except json.JSONDecodeError as e:
            logger.warning("Gemini returned invalid JSON (%d chars)", len(text))
            raise MalformedModelOutput("The language model returned invalid JSON.") from e
        if not isinstance(parsed, dict):
            raise MalformedModelOutput("The language model returned JSON that is not an object.")
        return LLMResponse(text=text, data=parsed)
