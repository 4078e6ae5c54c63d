"""Parse-moment handlers turning raw responses into typed values."""

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from termstore.core.errors import HttpRequestError, ParseError

logger = logging.getLogger(__name__)

# Keys that may accompany a "value" array in an OData collection envelope
ODATA_ANNOTATION_PREFIXES = ("@odata.", "odata.", "@")


def is_response(value: Any) -> bool:
    return isinstance(value, httpx.Response)


def error_message(response: httpx.Response) -> str:
    """Best-effort error text from an error response body."""
    message = response.text
    try:
        body = response.json()
    except ValueError:
        return message or response.reason_phrase

    if isinstance(body, dict):
        error = body.get("error", body)
        if isinstance(error, dict):
            detail = error.get("message", message)
            # Classic SharePoint REST nests the text one level deeper
            if isinstance(detail, dict):
                detail = detail.get("value", message)
            return str(detail)
    return message


def request_url(response: httpx.Response) -> str:
    try:
        return str(response.request.url)
    except RuntimeError:
        return "<unknown>"


def check_status(response: httpx.Response) -> None:
    """Raise HttpRequestError for non-success responses."""
    if response.status_code < 400:
        return
    raise HttpRequestError(
        f"Error making request to {request_url(response)} "
        f"({response.status_code}): {error_message(response)}",
        status_code=response.status_code,
        response=response,
    )


def unwrap_odata(data: Any) -> Any:
    """Strip OData envelopes: ``{"value": [...]}`` and ``{"d": {...}}``."""
    if not isinstance(data, dict):
        return data

    if "d" in data and len(data) == 1:
        inner = data["d"]
        if isinstance(inner, dict) and "results" in inner:
            return inner["results"]
        return inner

    if "value" in data and isinstance(data["value"], list):
        others = [k for k in data if k != "value"]
        if all(k.startswith(ODATA_ANNOTATION_PREFIXES) for k in others):
            return data["value"]

    return data


def validate(data: Any, model: Any) -> Any:
    """Validate decoded data against a pydantic-compatible type."""
    if model is None or data is None:
        return data
    try:
        return TypeAdapter(model).validate_python(data)
    except ValidationError as e:
        raise ParseError(f"Response does not match {getattr(model, '__name__', model)}: {e}") from e


def read_json(response: httpx.Response) -> Any:
    check_status(response)
    if response.status_code == 204 or not response.content:
        return None
    try:
        return response.json()
    except ValueError as e:
        raise ParseError(f"Invalid JSON from {request_url(response)}: {e}") from e


async def json_parse(url: Any, init: Any, result: Any):
    """Default parse handler.

    Decodes JSON, unwraps OData envelopes and validates the body against
    ``init.response_model``. Values that are not httpx responses are taken
    as already decoded.
    """
    data = read_json(result) if is_response(result) else result
    data = unwrap_odata(data)
    return url, init, validate(data, getattr(init, "response_model", None))


async def text_parse(url: Any, init: Any, result: Any):
    """Parse handler returning the body as text."""
    if is_response(result):
        check_status(result)
        return url, init, result.text
    return url, init, result

