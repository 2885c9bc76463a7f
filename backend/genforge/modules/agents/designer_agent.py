"""
PHASE 2 - Designer Agent
Produces the design system (colors, typography, spacing...) from a Blueprint
"""

import json
from typing import Any, Dict

from pydantic import ValidationError as SchemaValidationError

from genforge.core.exceptions import MalformedOutputError
from genforge.core.logging_config import logger
from genforge.modules.agents.base_agent import AgentContext, BaseAgent
from genforge.schemas.artifacts import DesignSystem
from genforge.utils.model_client import ModelClient, ModelParameters


class DesignerAgent(BaseAgent):
    """Designer Agent - one model call per pipeline run"""

    SYSTEM_PROMPT = """You are a UI/UX designer.
Create a complete design system based on the blueprint.

Output JSON with:
- colors: { primary, secondary, accent, background, text }
- typography: { headings, body, sizes }
- spacing: { small, medium, large, xlarge }
- borderRadius: string
- shadows: { small, medium, large }
- animations: boolean
- darkMode: boolean

Return ONLY the JSON."""

    def __init__(self, model_client: ModelClient, params: ModelParameters):
        super().__init__(
            name="DesignerAgent",
            role="UI/UX Designer",
            capabilities=["design_system"],
            model_client=model_client,
            params=params,
        )

    async def process(self, context: AgentContext) -> DesignSystem:
        logger.log_agent_event(self.name, "started")

        blueprint_json = json.dumps(context.blueprint.to_dict(), ensure_ascii=False)
        response = await self._call_model(
            user_prompt=f"Create design system for: {blueprint_json}",
            system_prompt=self.SYSTEM_PROMPT,
            max_tokens=1500,
        )

        parsed = self._parse_json(response)
        data: Dict[str, Any] = parsed.value if isinstance(parsed.value, dict) else {}
        try:
            design_system = DesignSystem.model_validate(data)
        except SchemaValidationError as e:
            raise MalformedOutputError(
                f"Design system output has invalid fields: {e.error_count()} error(s)",
                violations=[err["msg"] for err in e.errors()],
            ) from e

        logger.info(f"[{self.name}] Design system created ({len(design_system.colors)} colors)")
        return design_system
