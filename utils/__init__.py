# Utils package - Utility modules organized by domain
# Import from subpackages for convenience

from .clients.anthropic import call_anthropic_api_with_retry
from .parsing.json import repair_and_parse_json
from .url_validator import validate_url, normalize_url

__all__ = [
    "call_anthropic_api_with_retry",
    "repair_and_parse_json",
    "validate_url",
    "normalize_url",
]
