# src/chainworker/llm/metadata.py

from __future__ import annotations

import json
import re

from ..core.errors import MalformedCompletion
from ..core.models import ItemMetadata

METADATA_PROMPT_TEMPLATE = """
Explain this function with title and short description:
{code}

---

Answer in this format. Do not answer any other words:
{{"title": "/*title*/", "description": "/*short description under 40 words*/"}}

Example input:
function addNumbers(params) {{ const {{ a, b }} = params; return a + b; }} mainFunction = addNumbers;

Example output:
{{"title": "Simple Addition", "description": "Simply add two inputs and return the result."}}
""".strip()

# Models sometimes wrap the JSON in a ```json fence despite the instruction.
_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def build_metadata_prompt(code: str) -> str:
    """Prompt asking for a title + short description of an item's code."""
    return METADATA_PROMPT_TEMPLATE.format(code=code)


def parse_metadata(raw: str) -> ItemMetadata:
    """
    Parse a completion into (title, description).

    Raises MalformedCompletion unless the text is a JSON object with string
    `title` and `description` fields.
    """
    text = (raw or "").strip()
    m = _FENCE_RE.match(text)
    if m:
        text = m.group(1)

    try:
        data = json.loads(text)
    except ValueError as e:
        raise MalformedCompletion(f"completion is not JSON: {text[:80]!r}") from e

    if not isinstance(data, dict):
        raise MalformedCompletion(f"completion is not a JSON object: {type(data).__name__}")

    title = data.get("title")
    description = data.get("description")
    if not isinstance(title, str) or not isinstance(description, str):
        raise MalformedCompletion("completion lacks string title/description")

    return ItemMetadata(title=title.strip(), description=description.strip())
