"""
PHASE 5 - Tester Agent
Generates Playwright E2E tests, one Vitest unit test per component and a
fixed accessibility suite
"""

import json
import posixpath

from genforge.core.logging_config import logger
from genforge.modules.agents.base_agent import AgentContext, BaseAgent, strip_code_fences
from genforge.schemas.artifacts import FileSet
from genforge.utils.model_client import ModelClient, ModelParameters


E2E_PATH = "tests/e2e/app.spec.ts"
A11Y_PATH = "tests/a11y/accessibility.spec.ts"

A11Y_SUITE = """import { test, expect } from '@playwright/test';
import { injectAxe, checkA11y } from 'axe-playwright';

test.describe('Accessibility Tests', () => {
  test('should pass accessibility checks', async ({ page }) => {
    await page.goto('/');
    await injectAxe(page);
    await checkA11y(page);
  });

  test('should have proper heading hierarchy', async ({ page }) => {
    await page.goto('/');
    const h1Count = await page.locator('h1').count();
    expect(h1Count).toBe(1);
  });

  test('should have alt text for images', async ({ page }) => {
    await page.goto('/');
    const images = await page.locator('img').all();
    for (const img of images) {
      const alt = await img.getAttribute('alt');
      expect(alt).toBeTruthy();
    }
  });
});
"""


def unit_test_path(component_file: str) -> str:
    name, _ = posixpath.splitext(posixpath.basename(component_file))
    return f"tests/unit/{name}.test.tsx"


class TesterAgent(BaseAgent):
    """Tester Agent"""

    E2E_PROMPT = """Generate Playwright E2E tests for this app: {blueprint}

Include tests for:
- Navigation
- User interactions
- Form submissions
- Error states

Return ONLY the code."""

    UNIT_PROMPT = """Generate Vitest unit tests for this React component:

{code}

Test:
- Rendering
- Props
- Events
- States

Return ONLY the test code."""

    def __init__(self, model_client: ModelClient, params: ModelParameters):
        super().__init__(
            name="TesterAgent",
            role="QA Engineer",
            capabilities=["e2e_tests", "unit_tests", "accessibility_tests"],
            model_client=model_client,
            params=params,
        )

    async def process(self, context: AgentContext) -> FileSet:
        logger.log_agent_event(self.name, "started")
        test_files = FileSet()

        blueprint_json = json.dumps(context.blueprint.to_dict(), ensure_ascii=False)
        e2e = await self._call_model(
            user_prompt=self.E2E_PROMPT.format(blueprint=blueprint_json),
            max_tokens=2000,
        )
        test_files.add(E2E_PATH, strip_code_fences(e2e))

        for entry in context.files:
            if "components/" not in entry.path:
                continue
            test_path = unit_test_path(entry.path)
            if test_path in test_files:
                continue
            unit = await self._call_model(
                user_prompt=self.UNIT_PROMPT.format(code=entry.content),
                max_tokens=1500,
            )
            test_files.add(test_path, strip_code_fences(unit))

        test_files.add(A11Y_PATH, A11Y_SUITE)

        logger.info(f"[{self.name}] Generated {len(test_files)} test files")
        return test_files
