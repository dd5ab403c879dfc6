import json
import logging
import re
import json5
import demjson3

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


def _strip_code_fence(text: str) -> str:
    match = _CODE_FENCE_RE.match(text)
    return match.group(1) if match else text


def _first_object(text: str) -> str:
    """Slice from the first '{' to the last '}' to drop surrounding prose."""
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return text
    return text[start : end + 1]


# JSON Repair and Parsing Function
def repair_and_parse_json(response_text: str) -> dict:
    """
    Multi-layered JSON parsing with auto-repair capabilities.

    Attempts to parse JSON through multiple strategies:
    1. Standard json.loads() (after stripping markdown code fences)
    2. Clean common issues (trailing commas, comments)
    3. json5 parser (tolerates comments and trailing commas)
    4. demjson3 parser (auto-repairs many errors)
    5. Same chain on the first {...} block, for answers wrapped in prose

    Args:
        response_text: Raw text response from Claude

    Returns:
        Parsed JSON object

    Raises:
        ValueError: If all parsing attempts fail or the result is not an object
    """
    text = _strip_code_fence(response_text or "")
    errors = []

    for label, candidate in (("full text", text), ("first object", _first_object(text))):
        result = _parse_layers(candidate, errors)
        if result is not None:
            if not isinstance(result, dict):
                raise ValueError(f"Expected a JSON object, got {type(result).__name__}")
            if label != "full text":
                logger.warning("⚠️ JSON recovered from surrounding text")
            return result

    logger.error(f"❌ JSON parsing failed. Response preview: {text[:200]}...")
    raise ValueError(
        f"Failed to parse JSON after all attempts. Errors: {'; '.join(errors[:2])}"
    )


def _parse_layers(text: str, errors: list):
    # Layer 1: Try standard JSON parser first
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        errors.append(f"Standard JSON: {str(e)}")
        logger.debug(f"❌ Layer 1 failed: {str(e)}")

    # Layer 2: Clean common Claude JSON mistakes
    try:
        cleaned = text

        # Remove trailing commas before closing braces/brackets
        cleaned = re.sub(r",(\s*[}\]])", r"\1", cleaned)

        # Remove single-line comments (// ...)
        cleaned = re.sub(r"(?m)^\s*//.*?$", "", cleaned)

        # Remove multi-line comments (/* ... */)
        cleaned = re.sub(r"/\*.*?\*/", "", cleaned, flags=re.DOTALL)

        result = json.loads(cleaned)
        logger.debug("✅ Layer 2: Cleaned JSON parsing succeeded!")
        return result
    except json.JSONDecodeError as e:
        errors.append(f"Cleaned JSON: {str(e)}")
        logger.debug(f"❌ Layer 2 failed: {str(e)}")

    # Layer 3: Try json5 (tolerates trailing commas and comments)
    try:
        result = json5.loads(text)
        logger.debug("✅ Layer 3: JSON5 parsing succeeded!")
        return result
    except Exception as e:
        errors.append(f"JSON5: {str(e)}")
        logger.debug(f"❌ Layer 3 failed: {str(e)}")

    # Layer 4: Try demjson3 (auto-repairs many JSON errors)
    try:
        result = demjson3.decode(text)
        logger.debug("✅ Layer 4: DemJSON parsing succeeded!")
        return result
    except Exception as e:
        errors.append(f"DemJSON: {str(e)}")
        logger.debug(f"❌ Layer 4 failed: {str(e)}")

    return None
