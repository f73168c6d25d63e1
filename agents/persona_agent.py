"""Persona agent: runs a persona document against files.

The persona body becomes the system prompt; the model answers with a
QualityReport in JSON. No formatting or lint rules are executed here, the
hosted model does the work and this module only frames the request,
validates the reply and writes accepted fixes back.
"""

from __future__ import annotations

import fnmatch
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from personas.document import PersonaDocument
from schemas.quality_report import QualityReport

from .base import AgentInput, AgentOutput, BaseAgent, LLMProtocol
from .prompts import ENFORCEMENT_PRINCIPLES, QUALITY_REPORT_CONTRACT

logger = logging.getLogger(__name__)

DEFAULT_REQUEST = (
    "Bring these files in line with the project's formatting and linting "
    "standards. Flag anything ambiguous for human review."
)

MAX_FILE_BYTES = 50 * 1024  # 50KB

_CODE_FENCE = re.compile(r"```(?:json)?\s*\n(.*?)\n```", re.DOTALL)

SKIPPED_DIRS = {"__pycache__", "node_modules", "_build", "deps", "venv", ".venv"}


class ReportParseError(ValueError):
    """Raised when a model reply does not contain a valid quality report."""

    pass


def parse_report(text: str) -> QualityReport:
    """Parse a model reply into a QualityReport.

    Accepts a bare JSON object, a fenced ```json block, or an object
    surrounded by prose.

    Raises:
        ReportParseError: If no valid report can be extracted.
    """
    candidates = [text.strip()]
    candidates.extend(m.strip() for m in _CODE_FENCE.findall(text))
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    last_error: Exception | None = None
    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            last_error = e
            continue
        if not isinstance(data, dict):
            last_error = ValueError("reply is not a JSON object")
            continue
        try:
            return QualityReport.model_validate(data)
        except ValidationError as e:
            last_error = e
            continue

    raise ReportParseError(f"Could not parse quality report: {last_error}")


class PersonaAgent(BaseAgent):
    """Agent that hosts a persona document.

    Example:
        persona = PersonaDocument.from_file(Path("code-quality-enforcer.md"))
        agent = PersonaAgent(llm=get_backend("auto"), persona=persona)
        output = agent.run(AgentInput(context={"files": {"app.py": source}}))
        report = QualityReport.model_validate(output.data["report"])
    """

    def __init__(
        self,
        llm: LLMProtocol,
        persona: PersonaDocument,
        model: str | None = None,
        temperature: float = 0.2,
        max_tokens: int | None = None,
    ) -> None:
        """Initialize PersonaAgent.

        Args:
            llm: LLM backend.
            persona: The persona document to host.
            model: Model override; defaults to the persona's model alias
                resolved by the backend.
            temperature: Sampling temperature.
            max_tokens: Maximum response tokens.
        """
        self.persona = persona
        self.temperature = temperature
        self.max_tokens = max_tokens
        super().__init__(llm, name=persona.name, description=persona.summary)

        resolve = getattr(llm, "resolve_model", None)
        self.model = model or (resolve(persona.model) if callable(resolve) else None)

    def default_system_prompt(self) -> str:
        return f"""{self.persona.system_prompt}

{ENFORCEMENT_PRINCIPLES}

{QUALITY_REPORT_CONTRACT}"""

    def build_request(self, request: str, files: dict[str, str]) -> str:
        """Render the user message: the request followed by each file."""
        parts = [f"## Request\n\n{request.strip()}"]
        if files:
            parts.append(f"## Files ({len(files)})")
            for path, content in files.items():
                parts.append(f"### {path}\n\n```\n{content.rstrip()}\n```")
        else:
            parts.append("## Files\n\nNo files were provided.")
        return "\n\n".join(parts)

    def run(self, input_data: AgentInput) -> AgentOutput:
        """Run the persona and return its quality report.

        Context keys:
            request: What the user asked for (optional).
            files: Mapping of relative path to file content.

        Returns:
            AgentOutput with data["report"] (a QualityReport dump) on success.
        """
        start_time = self._log_run_start(input_data)
        context = input_data.safe_context()
        request = context.get("request") or DEFAULT_REQUEST
        files: dict[str, str] = dict(context.get("files") or {})

        chat_kwargs: dict[str, Any] = {
            "temperature": self.temperature,
            "json_mode": True,
        }
        if self.model:
            chat_kwargs["model"] = self.model
        if self.max_tokens:
            chat_kwargs["max_tokens"] = self.max_tokens

        try:
            reply = self._chat(
                self.build_request(request, files),
                history=input_data.history,
                **chat_kwargs,
            )
            report = parse_report(reply)
        except (ConnectionError, TimeoutError, RuntimeError, ReportParseError) as e:
            output = self._create_output(
                success=False,
                data={},
                errors=[str(e)],
                start_time=start_time,
                persona=self.persona.name,
            )
            self._log_run_end(output, start_time)
            return output

        self._drop_unknown_files(report, files)
        report.update_counts()
        report.determine_status()

        output = self._create_output(
            success=True,
            data={"report": report.model_dump(mode="json")},
            start_time=start_time,
            persona=self.persona.name,
            model=self.model,
            status=report.status.value,
        )
        self._log_run_end(output, start_time)
        return output

    def _drop_unknown_files(self, report: QualityReport, files: dict[str, str]) -> None:
        """Discard fixed files the model invented for paths it was not given."""
        if not files:
            report.fixed_files = []
            return
        kept = []
        for fixed in report.fixed_files:
            if fixed.file_path in files:
                kept.append(fixed)
            else:
                self.logger.warning(
                    "Ignoring fix for unknown file %s", fixed.file_path
                )
        report.fixed_files = kept


@dataclass
class CollectedFiles:
    """Files gathered for a persona run.

    Attributes:
        root: Directory that relative paths are based on.
        files: Relative path -> content.
        skipped: Relative paths that were not included, with the reason.
    """

    root: Path
    files: dict[str, str] = field(default_factory=dict)
    skipped: dict[str, str] = field(default_factory=dict)


def collect_files(
    target: Path,
    patterns: list[str] | None = None,
    max_bytes: int = MAX_FILE_BYTES,
) -> CollectedFiles:
    """Resolve a file or directory into readable text files.

    Hidden paths, dependency/build directories, files over max_bytes and
    files that are not UTF-8 text are skipped.

    Args:
        target: File or directory.
        patterns: Glob patterns matched against file names (e.g. ["*.py"]).
        max_bytes: Maximum file size to include.
    """
    target = Path(target).resolve()
    root = target if target.is_dir() else target.parent
    collected = CollectedFiles(root=root)

    if target.is_file():
        candidates = [target]
    elif target.is_dir():
        candidates = sorted(
            f for f in target.rglob("*")
            if f.is_file()
            and not any(
                p.startswith(".") or p in SKIPPED_DIRS
                for p in f.relative_to(target).parts
            )
        )
    else:
        return collected

    for path in candidates:
        if patterns and not any(fnmatch.fnmatch(path.name, p) for p in patterns):
            continue
        rel = path.relative_to(root).as_posix()
        if path.stat().st_size > max_bytes:
            collected.skipped[rel] = f"exceeds {max_bytes} bytes"
            continue
        try:
            collected.files[rel] = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            collected.skipped[rel] = "not UTF-8 text"
        except OSError as e:
            collected.skipped[rel] = f"could not read ({e})"

    return collected


def _resolve(root: Path, file_path: str) -> Path:
    """Resolve a report path against root (handles "./", backslashes and absolute paths)."""
    return (root / file_path.replace("\\", "/")).resolve()


def held_back_paths(report: QualityReport, root: Path) -> list[str]:
    """Fixed files that carry a human-review flag and must not be written."""
    root = Path(root).resolve()
    flagged = {_resolve(root, path) for path in report.flagged_paths()}
    return [
        fixed.file_path
        for fixed in report.fixed_files
        if _resolve(root, fixed.file_path) in flagged
    ]


def apply_fixes(report: QualityReport, root: Path) -> list[Path]:
    """Write the report's fixed files under root.

    Files carrying a human-review flag are left untouched, as are paths that
    resolve outside root. Flag and fix paths are compared after resolving
    both against root.

    Returns:
        Paths that were written.
    """
    root = Path(root).resolve()
    held = set(held_back_paths(report, root))
    written: list[Path] = []

    for fixed in report.fixed_files:
        if fixed.file_path in held:
            logger.info("Not writing %s: awaiting human review", fixed.file_path)
            continue

        path = _resolve(root, fixed.file_path)
        if not path.is_relative_to(root):
            logger.warning("Not writing %s: outside %s", fixed.file_path, root)
            continue

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(fixed.content, encoding="utf-8")
        written.append(path)

    return written
