from __future__ import annotations

import json
import re
from collections.abc import Iterator
from typing import Any

from finvision.providers.errors import ResponseParseError


JSON_FENCE_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")


def _candidates(text: str) -> Iterator[str]:
    yield text

    fence = JSON_FENCE_RE.search(text)
    if fence:
        yield fence.group(1)

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        yield text[start : end + 1]


def extract_json(text: str) -> Any:
    """Pull the JSON object out of free-form model output.

    Tries the whole string, then the first ```json fence, then the span from
    the first ``{`` to the last ``}``.
    """
    for candidate in _candidates(text):
        try:
            return json.loads(candidate)
        except (json.JSONDecodeError, TypeError):
            continue

    raise ResponseParseError("No extractable JSON object in model response.")
