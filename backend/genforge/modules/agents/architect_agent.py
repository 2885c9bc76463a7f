"""
PHASE 1 - Architect Agent
Classifies the request and turns it into a structured Blueprint
"""

from typing import Any, Dict

from genforge.core.logging_config import logger
from genforge.modules.agents.base_agent import AgentContext, BaseAgent
from genforge.modules.agents.domain_classifier_agent import DomainClassifier
from genforge.modules.prompts.registry import PromptRegistry
from genforge.modules.prompts.templates import template_id_for_domain
from genforge.schemas.blueprint import Blueprint, GenericBlueprint, build_blueprint
from genforge.utils.model_client import ModelClient, ModelParameters


class ArchitectAgent(BaseAgent):
    """
    Architect Agent

    Responsibilities:
    - Detect the request's domain
    - Run the domain template through the prompt registry (cached, quality-gated)
    - Fall back to a generic analysis when the templated path fails
    """

    SYSTEM_PROMPT = """You are an expert software architect.
Analyze the user's request and create a detailed technical blueprint.

Output a JSON object with:
- projectType: 'webapp' | 'landing' | 'dashboard' | 'ecommerce' | 'blog'
- framework: 'react' | 'nextjs' | 'vue' | 'svelte'
- features: string[] (list of features needed)
- components: string[] (UI components to create, PascalCase)
- pages: string[] (pages/routes needed)
- apis: string[] (API endpoints if needed)
- database: boolean (needs database?)
- authentication: boolean (needs auth?)
- styling: 'tailwind' | 'css' | 'styled-components'
- complexity: 'simple' | 'medium' | 'complex'

Return ONLY the JSON."""

    def __init__(
        self,
        model_client: ModelClient,
        params: ModelParameters,
        registry: PromptRegistry,
        classifier: DomainClassifier
    ):
        super().__init__(
            name="ArchitectAgent",
            role="Software Architect",
            capabilities=["domain_detection", "blueprint_generation"],
            model_client=model_client,
            params=params,
        )
        self.registry = registry
        self.classifier = classifier

    async def process(self, context: AgentContext) -> Blueprint:
        domain = self.classifier.detect(context.user_request)
        context.domain = domain
        prompt_id = template_id_for_domain(domain)

        logger.log_agent_event(self.name, "started", domain=domain, prompt_id=prompt_id)

        try:
            result = await self.registry.execute(prompt_id, {"description": context.user_request})
            blueprint = build_blueprint(domain, result.output)
            context.metadata["architecture"] = {
                "domain": domain,
                "prompt_id": prompt_id,
                "quality": result.quality,
                "from_cache": result.from_cache,
                "fallback": False,
            }
            logger.info(
                f"[{self.name}] Blueprint from {prompt_id}: quality {result.quality:.1f}/10"
                + (" (cached)" if result.from_cache else "")
            )
            return blueprint

        except Exception as e:
            logger.warning(f"[{self.name}] Templated analysis failed ({type(e).__name__}: {e}), falling back")

        blueprint = await self.analyze_generic(context.user_request)
        context.metadata["architecture"] = {
            "domain": domain,
            "prompt_id": None,
            "quality": None,
            "from_cache": False,
            "fallback": True,
        }
        return blueprint

    async def analyze_generic(self, user_request: str) -> GenericBlueprint:
        """Non-templated analysis; output is repaired and read as a GenericBlueprint"""
        logger.log_agent_event(self.name, "fallback_analysis")

        response = await self._call_model(
            user_prompt=f'Analyze this request and create a technical blueprint: "{user_request}"',
            system_prompt=self.SYSTEM_PROMPT,
            max_tokens=2000,
        )
        parsed = self._parse_json(response)
        data: Dict[str, Any] = parsed.value if isinstance(parsed.value, dict) else {}
        if parsed.repaired:
            logger.info(f"[{self.name}] Fallback blueprint repaired at stage '{parsed.stage}'")

        blueprint = GenericBlueprint.model_validate(data)
        logger.info(
            f"[{self.name}] Fallback blueprint: type={blueprint.project_type}, "
            f"{len(blueprint.components)} components, {len(blueprint.pages)} pages"
        )
        return blueprint
