"""
PHASE 3 - Developer Agent
Generates one React file per unit: the root App, each component, each page
"""

import json
import re
from typing import Optional

from genforge.core.logging_config import logger
from genforge.modules.agents.base_agent import AgentContext, BaseAgent, strip_code_fences
from genforge.schemas.artifacts import FileSet
from genforge.utils.model_client import ModelClient, ModelParameters


APP_PATH = "src/App.jsx"


def component_name(name: str) -> str:
    """'product card' -> 'ProductCard'; already-PascalCase names are kept"""
    parts = [part for part in re.split(r"[^A-Za-z0-9]+", name) if part]
    pascal = "".join(part[0].upper() + part[1:] for part in parts)
    if pascal and pascal[0].isdigit():
        pascal = f"C{pascal}"
    return pascal


def page_slug(name: str) -> str:
    """'Product Detail' -> 'product-detail'"""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def component_path(name: str) -> Optional[str]:
    file_name = component_name(name)
    return f"src/components/{file_name}.jsx" if file_name else None


def page_path(name: str) -> Optional[str]:
    slug = page_slug(name)
    return f"src/pages/{slug}.jsx" if slug else None


class DeveloperAgent(BaseAgent):
    """Developer Agent - one model call per generated file"""

    SYSTEM_PROMPT = """You are a senior React developer.
Write production-quality React (JSX) function components styled with Tailwind CSS.
Every file must import what it uses and end with a default export.
Return ONLY the code, no explanations."""

    def __init__(self, model_client: ModelClient, params: ModelParameters, use_streaming: bool = False):
        super().__init__(
            name="DeveloperAgent",
            role="Frontend Developer",
            capabilities=["react", "code_generation"],
            model_client=model_client,
            params=params,
            use_streaming=use_streaming,
        )

    async def process(self, context: AgentContext) -> FileSet:
        blueprint = context.blueprint
        files = FileSet()

        logger.log_agent_event(
            self.name, "started",
            components=len(blueprint.components), pages=len(blueprint.pages)
        )

        files.add(APP_PATH, await self.generate_component("App", context))

        for name in blueprint.components:
            path = component_path(name)
            if not path:
                logger.warning(f"[{self.name}] Skipping component with unusable name: {name!r}")
                continue
            if path in files:
                logger.warning(f"[{self.name}] Component {name!r} maps to existing {path}, skipping")
                continue
            files.add(path, await self.generate_component(component_name(name), context))

        for name in blueprint.pages:
            path = page_path(name)
            if not path:
                logger.warning(f"[{self.name}] Skipping page with unusable name: {name!r}")
                continue
            if path in files:
                logger.warning(f"[{self.name}] Page {name!r} maps to existing {path}, skipping")
                continue
            files.add(path, await self.generate_component(f"{component_name(name)}Page", context))

        logger.info(f"[{self.name}] Generated {len(files)} files")
        return files

    async def generate_component(self, name: str, context: AgentContext) -> str:
        design = json.dumps(context.design_system.to_dict(), ensure_ascii=False)
        blueprint = json.dumps(context.blueprint.to_dict(), ensure_ascii=False)

        prompt = (
            f'Generate a React component "{name}" with this design system:\n'
            f"{design}\n"
            f"For this blueprint: {blueprint}\n\n"
            f"Return ONLY the code, no explanations."
        )
        response = await self._call_model(
            user_prompt=prompt,
            system_prompt=self.SYSTEM_PROMPT,
            on_fragment=context.on_fragment,
        )
        logger.debug(f"[{self.name}] {name}: {len(response)} chars")
        return strip_code_fences(response)

