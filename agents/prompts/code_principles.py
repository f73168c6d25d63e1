"""Shared prompt components for hosted personas.

ENFORCEMENT_PRINCIPLES is appended to every persona that edits code;
QUALITY_REPORT_CONTRACT fixes the JSON shape the persona must answer in.
"""

ENFORCEMENT_PRINCIPLES = """
## Enforcement Principles

### Reading Before Writing
- Read every file in scope before proposing a change to it
- Follow the formatter and linter configuration the project already has
- Match the existing style exactly; consistency beats personal preference

### Behaviour Preservation
- Formatting and lint fixes must not change what the code does
- Remove an import or helper only when nothing refers to it
- Keep fixes minimal; do not refactor surrounding code

### Ambiguity
- When a fix could change behaviour, a public API, or a documented name,
  do not apply it: add a review flag with the question and the options
- When two conventions in the codebase disagree, flag it instead of picking one
"""

QUALITY_REPORT_CONTRACT = """
## Output Format

Respond with ONLY one JSON object, no prose before or after it:

{
  "summary": "one or two sentences",
  "findings": [
    {
      "file_path": "path as given in the request",
      "line": 12,
      "category": "formatting | unused_import | lint | naming | other",
      "severity": "error | warning | info",
      "message": "what is wrong",
      "suggested_fix": "how to fix it, or null",
      "fixed": true
    }
  ],
  "review_flags": [
    {
      "file_path": "path as given in the request",
      "line": 40,
      "question": "the decision a human has to make",
      "options": ["option a", "option b"]
    }
  ],
  "fixed_files": [
    {"file_path": "path as given in the request", "content": "full corrected file content"}
  ]
}

Rules:
- "fixed" is true only when the fix is included in fixed_files
- fixed_files contains complete file contents, never diffs or fragments
- Omit a file from fixed_files when nothing in it changed
- Use empty lists when there is nothing to report
"""
