# Post-processing of a finished answer: pulls out the fenced search-terms block
# some prompts ask the model to append, and produces the cleaned answer text.
# Author: Shibo Li
# Date: 2025-06-21
# Version: 0.1.0

import json
import re
import time
from typing import Any, Dict, List, Optional
from mcp_chat.models.common import SearchSuggestions
from mcp_chat.utils.logger import console

SEARCH_TERMS_PATTERN = re.compile(r"```SEARCH_TERMS_JSON\s*({[\s\S]*?})\s*```")

SEARCH_SUGGESTIONS_PROMPT = """You are a helpful research assistant. Answer the user's question clearly and accurately.

After your answer, append a fenced block with follow-up search terms in exactly this format:
```SEARCH_TERMS_JSON
{"searchTerms": ["term 1", "term 2", "term 3"], "confidence": 0.0, "reasoning": "why these terms help"}
```
"confidence" is a number between 0 and 1. Do not mention the block in your answer.
"""


def extract_search_suggestions(text: str) -> Optional[SearchSuggestions]:
    """Returns the suggestions in the first SEARCH_TERMS_JSON block, or None if absent or malformed."""
    match = SEARCH_TERMS_PATTERN.search(text)
    if not match:
        return None
    try:
        data = json.loads(match.group(1).strip())
    except json.JSONDecodeError as e:
        console.warning(f"Failed to parse search terms block: {e}")
        return None

    if (
        isinstance(data, dict)
        and isinstance(data.get("searchTerms"), list)
        and isinstance(data.get("confidence"), (int, float))
        and isinstance(data.get("reasoning"), str)
    ):
        return SearchSuggestions(
            terms=[str(term) for term in data["searchTerms"]],
            confidence=float(data["confidence"]),
            reasoning=data["reasoning"],
        )
    return None


def remove_search_terms_json(text: str) -> str:
    return SEARCH_TERMS_PATTERN.sub("", text).strip()


def closing_events(full_text: str, model: str, provider: str,
                   reasoning_type: Optional[str]) -> List[Dict[str, Any]]:
    """Frames sent after the upstream finished: suggestions, cleaned text and response metadata."""
    events: List[Dict[str, Any]] = []
    suggestions = extract_search_suggestions(full_text)
    if suggestions:
        events.append({
            "type": "searchSuggestions",
            "searchSuggestions": suggestions.terms,
            "confidence": suggestions.confidence,
            "reasoning": suggestions.reasoning,
        })
    cleaned_text = remove_search_terms_json(full_text)
    if cleaned_text != full_text:
        events.append({"type": "cleaned-text", "text": cleaned_text, "messageId": str(int(time.time() * 1000))})
    events.append({"type": "selected-model", "model": model})
    events.append({"type": "selected-provider", "provider": provider})
    if reasoning_type:
        events.append({"type": "reasoning-type", "reasoning": reasoning_type})
    return events
