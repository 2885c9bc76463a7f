"""
PHASE 4 - Reviewer Agent
Static checks over the generated files; no model call
"""

import re
from typing import List, Tuple

from genforge.core.logging_config import logger
from genforge.modules.agents.base_agent import AgentContext, BaseAgent
from genforge.schemas.artifacts import FileSet, ReviewReport
from genforge.utils.model_client import ModelClient, ModelParameters


ISSUE_PENALTY = 10
IMPROVEMENT_PENALTY = 5

_DEFAULT_EXPORT = re.compile(r"\bexport\s+default\b")
_USE_STATE_CALL = re.compile(r"(?<![\w.])useState\b")
_USE_STATE_IMPORT = re.compile(r"import\s*(?:\w+\s*,\s*)?\{[^}]*\buseState\b[^}]*\}\s*from\s*['\"]react['\"]")
_CONSOLE_LOG_LINE = re.compile(r"^[ \t]*console\.log\(.*\);?[ \t]*(?:\r?\n|$)", re.MULTILINE)


def review_score(issues: int, improvements: int) -> int:
    return max(0, 100 - ISSUE_PENALTY * issues - IMPROVEMENT_PENALTY * improvements)


class ReviewerAgent(BaseAgent):
    """
    Reviewer Agent

    Checks per file:
    - missing default export                 -> issue
    - useState used without importing it     -> issue
    - console.log left in                    -> improvement
    """

    def __init__(self, model_client: ModelClient, params: ModelParameters, strip_console_logs: bool = False):
        super().__init__(
            name="ReviewerAgent",
            role="Code Reviewer",
            capabilities=["static_review"],
            model_client=model_client,
            params=params,
        )
        self.strip_console_logs = strip_console_logs

    def review_file(self, path: str, code: str) -> Tuple[List[str], List[str]]:
        issues: List[str] = []
        improvements: List[str] = []

        if not _DEFAULT_EXPORT.search(code):
            issues.append(f"{path}: Missing default export")

        if _USE_STATE_CALL.search(code) and not _USE_STATE_IMPORT.search(code):
            issues.append(f"{path}: useState used without import")

        if "console.log" in code:
            improvements.append(f"{path}: Remove console.log statements")

        return issues, improvements

    async def process(self, context: AgentContext) -> Tuple[FileSet, ReviewReport]:
        logger.log_agent_event(self.name, "started", files=len(context.files))

        issues: List[str] = []
        improvements: List[str] = []
        reviewed = FileSet()

        for entry in context.files:
            file_issues, file_improvements = self.review_file(entry.path, entry.content)
            issues.extend(file_issues)
            improvements.extend(file_improvements)

            content = entry.content
            if self.strip_console_logs and "console.log" in content:
                content = _CONSOLE_LOG_LINE.sub("", content)
            reviewed.add(entry.path, content)

        report = ReviewReport(
            score=review_score(len(issues), len(improvements)),
            issues=issues,
            improvements=improvements,
        )
        logger.info(
            f"[{self.name}] Review complete: score {report.score}/100, "
            f"{len(issues)} issues, {len(improvements)} improvements"
        )
        return reviewed, report
