"""Prompt construction for per-file reviews and the final report rendering.

Every prompt is the active policy followed by a fixed delimiter and the diff
body. The diff is sent whole: there is no truncation or chunking, so very
large diffs are limited only by the model's context window.
"""

from __future__ import annotations

from dataclasses import dataclass

NO_ISSUES = "N/A"

# Stored in place of the review text when no review could be obtained, so a
# failed call is never mistaken for a clean "N/A".
REVIEW_FAILED_PREFIX = "[review failed]"

DIFF_DELIMITER = "\n\nHere's the diff to review:\n\n"

DEFAULT_POLICY = f"""You are a code reviewer analyzing a git diff. You must follow these response rules exactly:

RESPONSE FORMAT:
1. If there are ANY issues (security, performance, best practices, or code quality):
   - Respond with ONLY a bullet point list
   - Each bullet point should state the issue and its rationale
   - No introduction or conclusion text

2. If there are NO issues:
   - Respond with ONLY the exact text: {NO_ISSUES}
   - No other text or explanation

Example good responses:
- For issues:
• useState dependency missing in useEffect - could cause stale closures
• Array index used as key - may cause rendering issues
• Inline styles reduce performance - should use CSS classes

- For no issues:
{NO_ISSUES}"""

_RENDER_INSTRUCTIONS = f"""Convert this JSON code review report into a well-formatted markdown document.
Group issues by severity (high, medium, low).
Include file names as headers.
Format code-related terms with backticks.
Files whose review is exactly "{NO_ISSUES}" had no issues; list them together under a "No issues" heading.
Files whose review starts with "{REVIEW_FAILED_PREFIX}" could not be reviewed; list them under a "Not reviewed" heading.
Here's the JSON:

"""


@dataclass(frozen=True)
class ReviewRequest:
    """A single file's prompt, built once and sent once."""

    file_path: str
    diff_text: str
    prompt_text: str


def build_prompt(policy: str, diff_text: str) -> str:
    return f"{policy}{DIFF_DELIMITER}{diff_text}"


def build_request(file_path: str, diff_text: str, policy: str) -> ReviewRequest:
    return ReviewRequest(file_path=file_path, diff_text=diff_text, prompt_text=build_prompt(policy, diff_text))


def build_render_prompt(report_json: str) -> str:
    """Build the prompt that turns the JSON report into a Markdown document."""
    return _RENDER_INSTRUCTIONS + report_json
