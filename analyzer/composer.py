"""
Result Composer: turns a Selection into the user-facing AnalysisResult.
"""

from urllib.parse import urlparse

from api.models import AnalysisResult
from analyzer.selection import Selection, TIER_HIGH, TIER_LOW, TIER_ZERO


ZERO_DEFECTS_NOTE = "Great job! We could not find any obvious conversion killers."
EXEMPT_NOTE = "Naturally a 10/10 landing page ;)"


def hostname_of(url: str) -> str:
    """Hostname of an already validated URL."""
    return urlparse(url).hostname or url


def zero_defects_message(host: str) -> str:
    return f"Very good! We found hardly any weak spots on {host}."


def low_defects_message(host: str, total: int) -> str:
    noun = "conversion killer" if total == 1 else "conversion killers"
    return (
        f"Good news: the landing page of {host} has only {total} potential {noun}. "
        "The most important one:"
    )


def high_defects_message(host: str, total: int) -> str:
    return (
        f"Analysis complete: the landing page of {host} currently has {total} "
        "potential conversion killers. The most severe ones:"
    )


def compose_result(url: str, selection: Selection) -> AnalysisResult:
    """
    Build the response for a scored page.

    Args:
        url: Validated, normalized URL (never the raw user input)
        selection: Output of select_top_defects()
    """
    host = hostname_of(url)

    if selection.tier == TIER_ZERO:
        return AnalysisResult(
            message=zero_defects_message(host),
            total_found=0,
            top_defects=[],
            remaining=0,
            is_special_case=True,
            note=ZERO_DEFECTS_NOTE,
        )

    if selection.tier == TIER_LOW:
        message = low_defects_message(host, selection.total_found)
    elif selection.tier == TIER_HIGH:
        message = high_defects_message(host, selection.total_found)
    else:
        raise ValueError(f"Unknown selection tier: {selection.tier}")

    return AnalysisResult(
        message=message,
        total_found=selection.total_found,
        top_defects=selection.top,
        remaining=selection.remaining,
    )


def exempt_result(url: str) -> AnalysisResult:
    """Canned positive result for allow-listed hosts."""
    return AnalysisResult(
        message=f"We checked {hostname_of(url)}.",
        is_special_case=True,
        note=EXEMPT_NOTE,
    )
