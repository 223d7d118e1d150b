import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from app.core.config import GEMINI_API_KEY, GEMINI_API_URL, GEMINI_MODEL, HTTP_TIMEOUT, MAX_TOOL_ROUNDTRIPS
from app.core.exceptions import MalformedModelOutput, ModelInvocationError, ToolFailure

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$", re.S)


@dataclass
class ModelTool:
    """A function the model may call while producing its answer."""
    name: str
    description: str
    parameters: Dict[str, Any]
    handler: Callable[[Dict[str, Any]], Dict[str, Any]]
    unavailable_notice: str = "The tool result is unavailable."

    def declaration(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


def _strip_code_fences(text_content: str) -> str:
    text_content = text_content.strip()
    if text_content.startswith("```json"):
        text_content = text_content[7:]
    elif text_content.startswith("```"):
        text_content = text_content[3:]
    if text_content.endswith("```"):
        text_content = text_content[:-3]
    return text_content.strip()


def _parse_json_output(text_content: str) -> Any:
    cleaned = _strip_code_fences(text_content)
    if not cleaned:
        raise MalformedModelOutput("Model returned an empty answer", raw_output=text_content)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedModelOutput(f"Model answer is not valid JSON: {e}", raw_output=text_content) from e


def _image_part(photo_data_uri: str) -> Dict[str, Any]:
    match = _DATA_URI_RE.match(photo_data_uri)
    if not match:
        raise ValueError("Image must be a base64 data URI")
    return {"inlineData": {"mimeType": match.group("mime"), "data": match.group("data")}}


def _post_generate_content(payload: Dict[str, Any]) -> Dict[str, Any]:
    if not GEMINI_API_KEY:
        raise ModelInvocationError("GEMINI_API_KEY environment variable not set")

    url = f"{GEMINI_API_URL}/{GEMINI_MODEL}:generateContent?key={GEMINI_API_KEY}"
    headers = {"Content-Type": "application/json"}

    try:
        response = requests.post(url, headers=headers, json=payload, timeout=HTTP_TIMEOUT)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else "unknown"
        raise ModelInvocationError(f"Gemini API returned HTTP {status}") from e
    except requests.exceptions.RequestException as e:
        raise ModelInvocationError(f"Gemini API request failed: {e}") from e
    except ValueError as e:
        raise ModelInvocationError(f"Gemini API returned invalid JSON: {e}") from e


def _run_tool(tools: Dict[str, ModelTool], function_call: Dict[str, Any]) -> Dict[str, Any]:
    name = function_call.get("name")
    args = function_call.get("args") or {}
    tool = tools.get(name)
    if tool is None:
        logger.warning(f"Model requested undeclared tool '{name}'")
        return {"error": f"Unknown tool '{name}'"}

    logger.info(f"Model called tool '{name}' with args {args}")
    try:
        return tool.handler(args)
    except ToolFailure as e:
        logger.warning(f"Tool '{name}' failed, continuing with degraded context: {e}")
        return {"error": str(e), "note": tool.unavailable_notice}


def call_gemini(
    prompt: str,
    tools: Optional[List[ModelTool]] = None,
    photo_data_uri: Optional[str] = None,
    temperature: float = 0.2,
) -> Any:
    """
    Send a prompt to Gemini and return the parsed JSON answer.

    When tools are declared the model may answer with function calls instead;
    each call is executed locally and its result sent back, up to
    MAX_TOOL_ROUNDTRIPS exchanges. Single attempt, no retries.
    """
    parts: List[Dict[str, Any]] = [{"text": prompt}]
    if photo_data_uri:
        parts.append(_image_part(photo_data_uri))
    contents: List[Dict[str, Any]] = [{"role": "user", "parts": parts}]

    tool_map = {tool.name: tool for tool in tools or []}

    generation_config = {
        "temperature": temperature,
        "topK": 40,
        "topP": 0.95,
        "maxOutputTokens": 8192,
    }
    if not tool_map:
        # JSON mode cannot be combined with function calling
        generation_config["responseMimeType"] = "application/json"

    for round_trip in range(MAX_TOOL_ROUNDTRIPS + 1):
        payload: Dict[str, Any] = {
            "contents": list(contents),
            "generationConfig": generation_config,
        }
        if tool_map:
            payload["tools"] = [{"functionDeclarations": [t.declaration() for t in tool_map.values()]}]

        data = _post_generate_content(payload)

        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not candidates:
            raise MalformedModelOutput("No candidates in response", raw_output=data)

        response_parts = (candidates[0].get("content") or {}).get("parts") or []
        function_calls = [p["functionCall"] for p in response_parts if p.get("functionCall")]

        if not function_calls:
            text_content = "".join(p.get("text", "") for p in response_parts)
            return _parse_json_output(text_content)

        if round_trip == MAX_TOOL_ROUNDTRIPS:
            break

        contents.append({"role": "model", "parts": response_parts})
        contents.append({
            "role": "user",
            "parts": [
                {"functionResponse": {"name": fc.get("name"), "response": _run_tool(tool_map, fc)}}
                for fc in function_calls
            ],
        })

    raise MalformedModelOutput(
        f"Model was still requesting tools after {MAX_TOOL_ROUNDTRIPS} round-trips"
    )


def generate_structured(
    feature: str,
    prompt: str,
    response_model: Type[T],
    tools: Optional[List[ModelTool]] = None,
    photo_data_uri: Optional[str] = None,
) -> T:
    """Invoke the model and validate its answer strictly against response_model."""
    logger.info(
        f"Calling Gemini for {feature} "
        f"(tools: {[t.name for t in tools] if tools else 'none'})"
    )
    raw_output = call_gemini(prompt, tools=tools, photo_data_uri=photo_data_uri)

    try:
        # Strict JSON mode: no string-to-number or bool-to-number coercion
        result = response_model.model_validate_json(json.dumps(raw_output), strict=True)
    except ValidationError as e:
        logger.error(f"{feature}: model output failed schema validation: {e.error_count()} error(s)")
        raise MalformedModelOutput(
            f"{feature} output does not match {response_model.__name__}: {e}",
            raw_output=raw_output,
        ) from e

    logger.info(f"Gemini response for {feature} validated successfully")
    return result
