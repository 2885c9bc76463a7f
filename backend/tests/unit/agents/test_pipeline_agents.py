"""
Unit Tests for the Pipeline Agents
"""
import json

import pytest

from genforge.core.exceptions import MalformedOutputError, ModelInvocationError
from genforge.modules.agents.architect_agent import ArchitectAgent
from genforge.modules.agents.base_agent import AgentContext, strip_code_fences
from genforge.modules.agents.designer_agent import DesignerAgent
from genforge.modules.agents.developer_agent import (
    APP_PATH,
    DeveloperAgent,
    component_name,
    component_path,
    page_path,
    page_slug,
)
from genforge.modules.agents.domain_classifier_agent import DomainClassifier
from genforge.modules.agents.reviewer_agent import ReviewerAgent, review_score
from genforge.modules.agents.tester_agent import A11Y_PATH, A11Y_SUITE, E2E_PATH, TesterAgent, unit_test_path
from genforge.schemas.artifacts import DesignSystem, FileSet
from genforge.schemas.blueprint import EcommerceBlueprint, GenericBlueprint, LandingBlueprint
from genforge.utils.model_client import ModelParameters


PARAMS = ModelParameters(model="claude-test", temperature=0.5, max_tokens=1000)

COMPONENT_REPLY = "```jsx\nexport default function Thing() {\n  return null;\n}\n```"


def landing_context(**kwargs) -> AgentContext:
    context = AgentContext(user_request="landing page for a bakery", **kwargs)
    if context.blueprint is None:
        context.blueprint = LandingBlueprint(pages=["index", "about"], components=["Hero", "Contact Form"])
    if context.design_system is None:
        context.design_system = DesignSystem(colors={"primary": "#f00"})
    return context


class TestStripCodeFences:
    def test_fenced_block(self):
        assert strip_code_fences("```jsx\nconst a = 1;\n```") == "const a = 1;\n"

    def test_first_block_wins(self):
        text = "Here:\n```js\nfirst();\n```\nand\n```js\nsecond();\n```"
        assert strip_code_fences(text) == "first();\n"

    def test_unterminated_fence(self):
        assert strip_code_fences("```tsx\nconst a = 1;") == "const a = 1;\n"

    def test_plain_code(self):
        assert strip_code_fences("const a = 1;") == "const a = 1;\n"

    def test_empty(self):
        assert strip_code_fences("") == ""


class TestArchitectAgent:
    """Templated blueprint with generic fallback"""

    def make_agent(self, mock_model, registry):
        return ArchitectAgent(mock_model, PARAMS, registry, DomainClassifier())

    def test_agent_initialization(self, mock_model, registry):
        agent = self.make_agent(mock_model, registry)

        assert agent.name == "ArchitectAgent"
        assert "blueprint_generation" in agent.capabilities
        assert "JSON" in agent.SYSTEM_PROMPT

    @pytest.mark.asyncio
    async def test_templated_blueprint(self, mock_model, registry, ecommerce_reply):
        mock_model.set_response("e-commerce application", ecommerce_reply)
        context = AgentContext(user_request="An online store for sneakers")

        blueprint = await self.make_agent(mock_model, registry).process(context)

        assert isinstance(blueprint, EcommerceBlueprint)
        assert context.domain == "ecommerce"
        assert context.metadata["architecture"]["prompt_id"] == "ecommerce-v1"
        assert context.metadata["architecture"]["fallback"] is False

    @pytest.mark.asyncio
    async def test_fallback_to_generic_analysis(self, mock_model, registry):
        mock_model.set_response("e-commerce application", "I am not able to produce JSON today.")
        mock_model.set_response("analyze this request", json.dumps({
            "projectType": "webapp", "framework": "react", "features": ["catalog"],
            "components": ["Header"], "pages": ["home"], "database": True,
        }))
        context = AgentContext(user_request="An online store for sneakers")

        blueprint = await self.make_agent(mock_model, registry).process(context)

        assert isinstance(blueprint, GenericBlueprint)
        assert blueprint.database is True
        assert context.metadata["architecture"]["fallback"] is True
        # two templated attempts, then the fallback call
        assert mock_model.call_count == 3

    @pytest.mark.asyncio
    async def test_unexpected_registry_error_falls_back(self, mock_model, registry, monkeypatch):
        async def crashing_execute(prompt_id, variables):
            raise RuntimeError("registry exploded")

        monkeypatch.setattr(registry, "execute", crashing_execute)
        mock_model.set_response("analyze this request", json.dumps({
            "projectType": "webapp", "components": ["Header"], "pages": ["home"],
        }))
        context = AgentContext(user_request="An online store for sneakers")

        blueprint = await self.make_agent(mock_model, registry).process(context)

        assert isinstance(blueprint, GenericBlueprint)
        assert context.metadata["architecture"]["fallback"] is True
        assert mock_model.call_count == 1
        assert mock_model.params[-1].max_tokens == 2000

    @pytest.mark.asyncio
    async def test_fallback_model_failure_propagates(self, mock_model, registry):
        mock_model.queue_responses(
            ModelInvocationError("down"), ModelInvocationError("down"), ModelInvocationError("still down"),
        )

        with pytest.raises(ModelInvocationError, match="still down"):
            await self.make_agent(mock_model, registry).process(AgentContext(user_request="store"))


class TestDesignerAgent:
    @pytest.mark.asyncio
    async def test_design_system(self, mock_model):
        mock_model.queue_responses(json.dumps({
            "colors": {"primary": "#4F46E5"}, "typography": {"body": "Inter"},
            "borderRadius": "8px", "darkMode": True,
        }))
        context = landing_context()

        design = await DesignerAgent(mock_model, PARAMS).process(context)

        assert design.colors == {"primary": "#4F46E5"}
        assert design.dark_mode is True
        assert mock_model.last_prompt.startswith("Create design system for: ")
        assert mock_model.params[0].max_tokens == 1500

    @pytest.mark.asyncio
    async def test_invalid_fields_are_malformed(self, mock_model):
        mock_model.queue_responses('{"colors": "red"}')

        with pytest.raises(MalformedOutputError):
            await DesignerAgent(mock_model, PARAMS).process(landing_context())


class TestDeveloperAgent:
    """One file per unit, deterministic paths"""

    @pytest.mark.parametrize("name,expected", [
        ("product card", "ProductCard"),
        ("ProductCard", "ProductCard"),
        ("contact-form", "ContactForm"),
        ("3d view", "C3dView"),
        ("!!!", ""),
    ])
    def test_component_name(self, name, expected):
        assert component_name(name) == expected

    def test_paths(self):
        assert component_path("product card") == "src/components/ProductCard.jsx"
        assert page_slug("Product Detail") == "product-detail"
        assert page_path("Product Detail") == "src/pages/product-detail.jsx"
        assert page_path("???") is None

    @pytest.mark.asyncio
    async def test_generates_app_components_and_pages(self, mock_model):
        mock_model.default = COMPONENT_REPLY

        files = await DeveloperAgent(mock_model, PARAMS).process(landing_context())

        assert files.paths == [
            APP_PATH,
            "src/components/Hero.jsx",
            "src/components/ContactForm.jsx",
            "src/pages/index.jsx",
            "src/pages/about.jsx",
        ]
        assert files.get(APP_PATH) == "export default function Thing() {\n  return null;\n}\n"
        assert mock_model.call_count == 5
        assert 'React component "App"' in mock_model.prompts[0]
        assert 'React component "AboutPage"' in mock_model.prompts[-1]

    @pytest.mark.asyncio
    async def test_colliding_names_generate_once(self, mock_model):
        mock_model.default = COMPONENT_REPLY
        context = landing_context(blueprint=LandingBlueprint(pages=[], components=["Contact Form", "contact-form", "!!"]))

        files = await DeveloperAgent(mock_model, PARAMS).process(context)

        assert files.paths == [APP_PATH, "src/components/ContactForm.jsx"]
        assert mock_model.call_count == 2

    @pytest.mark.asyncio
    async def test_streaming_forwards_fragments(self, mock_model):
        mock_model.default = COMPONENT_REPLY
        fragments = []
        context = landing_context(
            blueprint=LandingBlueprint(pages=[], components=[]),
            on_fragment=fragments.append,
        )

        files = await DeveloperAgent(mock_model, PARAMS, use_streaming=True).process(context)

        assert "".join(fragments) == COMPONENT_REPLY
        assert files.get(APP_PATH).startswith("export default function")

    @pytest.mark.asyncio
    async def test_broken_stream_carries_partial_text(self, mock_model):
        mock_model.default = COMPONENT_REPLY
        mock_model.stream_error_after = 2
        context = landing_context(blueprint=LandingBlueprint(pages=[], components=[]))

        with pytest.raises(ModelInvocationError) as exc_info:
            await DeveloperAgent(mock_model, PARAMS, use_streaming=True).process(context)

        assert exc_info.value.partial_text == COMPONENT_REPLY[:16]


class TestReviewerAgent:
    """Static checks and scoring"""

    GOOD = "import React, { useState } from 'react';\nexport default function A() {\n  const [x] = useState(0);\n  return x;\n}\n"
    BAD = "function B() {\n  const [x] = useState(0);\n  console.log(x);\n  return x;\n}\n"

    def test_review_score(self):
        assert review_score(0, 0) == 100
        assert review_score(2, 1) == 75
        assert review_score(20, 0) == 0

    def test_review_file(self, mock_model):
        agent = ReviewerAgent(mock_model, PARAMS)

        assert agent.review_file("a.jsx", self.GOOD) == ([], [])
        issues, improvements = agent.review_file("b.jsx", self.BAD)
        assert issues == ["b.jsx: Missing default export", "b.jsx: useState used without import"]
        assert improvements == ["b.jsx: Remove console.log statements"]

    def test_qualified_use_state_needs_no_import(self, mock_model):
        code = "import React from 'react';\nexport default function C() { return React.useState(0); }\n"

        assert ReviewerAgent(mock_model, PARAMS).review_file("c.jsx", code) == ([], [])

    @pytest.mark.asyncio
    async def test_process_reports_without_model_calls(self, mock_model):
        context = landing_context()
        context.files = FileSet([("a.jsx", self.GOOD), ("b.jsx", self.BAD)])

        reviewed, report = await ReviewerAgent(mock_model, PARAMS).process(context)

        assert report.score == 75
        assert not report.passed
        assert reviewed == context.files
        assert mock_model.call_count == 0

    @pytest.mark.asyncio
    async def test_strip_console_logs(self, mock_model):
        context = landing_context()
        context.files = FileSet([("b.jsx", self.BAD)])

        reviewed, report = await ReviewerAgent(mock_model, PARAMS, strip_console_logs=True).process(context)

        assert "console.log" not in reviewed.get("b.jsx")
        assert report.improvements == ["b.jsx: Remove console.log statements"]


class TestTesterAgent:
    def test_unit_test_path(self):
        assert unit_test_path("src/components/Hero.jsx") == "tests/unit/Hero.test.tsx"

    @pytest.mark.asyncio
    async def test_generates_e2e_unit_and_a11y(self, mock_model):
        mock_model.set_response("Playwright E2E", "```ts\ntest('home', () => {});\n```")
        mock_model.set_response("Vitest unit tests", "```tsx\ndescribe('Hero', () => {});\n```")
        context = landing_context()
        context.files = FileSet([
            ("src/App.jsx", "export default function App() {}"),
            ("src/components/Hero.jsx", "export default function Hero() {}"),
            ("src/pages/index.jsx", "export default function IndexPage() {}"),
        ])

        tests = await TesterAgent(mock_model, PARAMS).process(context)

        assert tests.paths == [E2E_PATH, "tests/unit/Hero.test.tsx", A11Y_PATH]
        assert tests.get(E2E_PATH) == "test('home', () => {});\n"
        assert tests.get(A11Y_PATH) == A11Y_SUITE
        assert mock_model.call_count == 2
        assert "export default function Hero() {}" in mock_model.prompts[1]
