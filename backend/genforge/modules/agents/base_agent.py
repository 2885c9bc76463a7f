import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from genforge.core.logging_config import logger
from genforge.schemas.artifacts import DesignSystem, FileSet, ReviewReport
from genforge.schemas.blueprint import Blueprint
from genforge.utils.json_repair import RepairResult, extract_json_from_response
from genforge.utils.model_client import ModelClient, ModelParameters, accumulate_stream


_FENCE_BLOCK = re.compile(r"```[\w+-]*[ \t]*\n([\s\S]*?)\n?```")


@dataclass
class AgentContext:
    """
    Context object passed between agents in the multi-phase pipeline.
    Each phase reads what earlier phases produced and stores its own artifact.
    """
    user_request: str
    job_id: str = ""
    domain: Optional[str] = None
    blueprint: Optional[Blueprint] = None
    design_system: Optional[DesignSystem] = None
    files: Optional[FileSet] = None
    review_report: Optional[ReviewReport] = None
    test_files: Optional[FileSet] = None
    on_fragment: Optional[Callable[[str], None]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Ensure metadata is never None - always use empty dict as fallback"""
        if self.metadata is None:
            self.metadata = {}


def strip_code_fences(text: str) -> str:
    """
    Remove markdown fences around generated code.
    If the reply has several fenced blocks, the first one is the code.
    """
    if not text:
        return ""
    stripped = text.strip()
    match = _FENCE_BLOCK.search(stripped)
    if match:
        return match.group(1).strip() + "\n"
    # Truncated reply: opening fence with no closing fence
    if stripped.startswith("```"):
        first_newline = stripped.find("\n")
        body = stripped[first_newline + 1:] if first_newline != -1 else ""
        return body.rstrip("`").strip() + "\n"
    return stripped + "\n"


class BaseAgent(ABC):
    """Base class for all pipeline agents"""

    def __init__(
        self,
        name: str,
        role: str,
        capabilities: List[str],
        model_client: ModelClient,
        params: ModelParameters,
        use_streaming: bool = False
    ):
        self.name = name
        self.role = role
        self.capabilities = capabilities
        self.model_client = model_client
        self.params = params
        self.use_streaming = use_streaming

    @abstractmethod
    async def process(self, context: AgentContext) -> Any:
        """
        Run this agent's phase

        Args:
            context: AgentContext with the request and earlier artifacts

        Returns:
            The phase artifact
        """
        pass

    async def _call_model(
        self,
        user_prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        on_fragment: Optional[Callable[[str], None]] = None
    ) -> str:
        """
        Call the model with this agent's parameters

        Args:
            user_prompt: Rendered request
            system_prompt: Agent instructions
            max_tokens: Override token budget
            temperature: Override temperature
            on_fragment: Receives streamed fragments when streaming is on

        Returns:
            Completion text
        """
        params = ModelParameters(
            model=self.params.model,
            temperature=self.params.temperature if temperature is None else temperature,
            max_tokens=max_tokens or self.params.max_tokens,
            system=system_prompt,
        )
        try:
            if self.use_streaming:
                return await accumulate_stream(
                    self.model_client.invoke_streaming(user_prompt, params),
                    on_fragment
                )
            return await self.model_client.invoke(user_prompt, params)
        except Exception as e:
            logger.error(f"[{self.name}] Model call failed: {type(e).__name__}: {e}")
            raise

    @staticmethod
    def _parse_json(text: str) -> RepairResult:
        return extract_json_from_response(text)
