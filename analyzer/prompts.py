"""
Conversion Killer Prompts for Claude API

Builds the instruction for the LLM scoring backend from a structured
page summary.
"""

import json


def get_conversion_killer_prompt(summary: dict, max_killers: int = 2, max_detail_words: int = 25) -> str:
    """
    Generate the conversion-killer prompt for one page.

    Args:
        summary: Dictionary from summarize_page() with title, headings,
                 buttons, counts and a visible-text excerpt.
        max_killers: How many killers to describe in detail.
        max_detail_words: Word limit for each detail sentence.

    Returns:
        Complete prompt string for Claude.
    """

    base_prompt = f"""You are an Expert Conversion Rate Optimization (CRO) Specialist. You review landing pages and name the "conversion killers": UX and marketing defects that stop visitors from becoming customers.

## Your Task

Review the landing page summary below and:
1. Count every conversion killer you can justify from the summary.
2. Describe the {max_killers} most severe ones, most severe first.

**Rules**:
- Only report problems that are supported by the summary (headings, buttons, counts, text excerpt)
- Titles are short category names (max 6 words), e.g. "Weak value proposition"
- Each detail is ONE sentence of at most {max_detail_words} words, addressed to the site owner
- Quote the page's own wording where it helps (e.g. the headline or button label)
- If the page has no conversion killers, return totalFound 0 and an empty killers list

## Output Format

Respond with JSON only, no markdown and no commentary:

{{
  "totalFound": <integer, total number of conversion killers>,
  "killers": [
    {{"title": "<short title>", "detail": "<one sentence>"}}
  ]
}}
"""

    page_context = json.dumps(summary, ensure_ascii=False, indent=2)

    return f"""{base_prompt}
## Landing Page Summary

{page_context}
"""
