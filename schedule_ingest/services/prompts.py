"""
LLM Prompt Templates for Schedule Extraction
============================================

Prompt used by ScheduleExtractor to turn normalized document text into a
JSON array of schedule items.

Design Principles:
------------------
1. **Explicit field contract**: the prompt names every key and its format
   so the response parser can stay strict.
2. **JSON-only output**: the model is asked for a bare JSON array. The
   parser still tolerates leading prose or code fences.
3. **Conservative extraction**: unsure dates must be null rather than guessed.

Usage:
------
```python
from schedule_ingest.services.prompts import get_schedule_prompt

prompt = get_schedule_prompt(text, source_label="syllabus.pdf")
response = await client.complete(prompt)
```
"""

from langchain_core.prompts import PromptTemplate

# =============================================================================
# SYSTEM PROMPT
# =============================================================================

SCHEDULE_SYSTEM_PROMPT = (
    "You are a helpful assistant that extracts academic schedule information "
    "from text and returns valid JSON arrays."
)

# =============================================================================
# EXTRACTION PROMPT
# =============================================================================

SCHEDULE_PROMPT_TEMPLATE = PromptTemplate.from_template(
    """You are an AI assistant that extracts academic schedule and assignment information from text content.

Analyze the following text extracted from a file named "{source_label}" and extract any assignments, due dates, class schedules, or academic events.

For each item found, return a JSON object with this exact structure:
{{
  "assignment": "string - description of the assignment, class, or event",
  "due_date": "YYYY-MM-DD format or null if no date found",
  "location": "string or null if no location specified",
  "source": "string - the filename where this was found"
}}

Return a JSON array of these objects. If no relevant academic information is found, return an empty array: []

Rules:
- Only extract academic-related content (assignments, classes, exams, study sessions, etc.)
- Dates must be in YYYY-MM-DD format or null
- Be conservative - only extract clear, unambiguous information
- If you're unsure about a date, set it to null
- Use "{source_label}" as the source of every item
- Respond with the JSON array only

Text content to analyze:
{document_text}
"""
)

TRUNCATION_MARKER = "\n[... text truncated ...]"


def truncate_document_text(text: str, max_chars: int) -> tuple[str, bool]:
    """
    Bound the document text embedded in a prompt.

    Args:
        text: Normalized document text
        max_chars: Maximum characters to keep

    Returns:
        Tuple of (possibly truncated text, whether truncation happened)
    """
    if len(text) <= max_chars:
        return text, False
    return text[:max_chars] + TRUNCATION_MARKER, True


def get_schedule_prompt(document_text: str, source_label: str) -> str:
    """
    Get the formatted schedule extraction prompt.

    Args:
        document_text: Normalized (and already bounded) document text
        source_label: Originating file name

    Returns:
        Formatted prompt string ready for the completion client
    """
    return SCHEDULE_PROMPT_TEMPLATE.format(
        document_text=document_text,
        source_label=source_label,
    )
