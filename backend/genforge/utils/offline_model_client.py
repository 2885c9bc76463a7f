"""
Offline Model Client
====================
Deterministic canned responses so the whole engine can run without an API
key (``USE_MOCK_MODEL=true`` or ``genforge --mock``).

Responses are chosen from the prompt text: domain blueprint templates,
design system requests, component code, E2E tests and unit tests each get a
realistic reply. Custom replies can be registered by keyword.
"""

import asyncio
import json
import re
from typing import AsyncIterator, Dict, Optional

from genforge.core.logging_config import logger
from genforge.utils.model_client import ModelParameters


DOMAIN_BLUEPRINTS: Dict[str, dict] = {
    "ecommerce": {
        "projectType": "ecommerce",
        "businessType": "b2c",
        "productCategory": "general",
        "features": {"cart": True, "checkout": True, "search": True, "filters": True,
                     "userAccounts": True, "wishlist": True, "reviews": False},
        "pages": ["home", "products", "product-detail", "cart", "checkout", "confirmation"],
        "components": ["Header", "ProductCard", "CartItem", "CheckoutForm", "SearchBar", "Footer"],
        "designSystem": {"primaryColor": "#4F46E5", "style": "modern"},
    },
    "saas": {
        "projectType": "saas",
        "businessModel": "subscription",
        "targetAudience": "b2b",
        "features": {"authentication": True, "dashboard": True, "billing": True,
                     "teamManagement": True, "api": False, "adminPanel": False},
        "pages": ["landing", "login", "register", "dashboard", "settings", "billing"],
        "components": ["Navbar", "Sidebar", "MetricCard", "DataTable", "UserMenu"],
        "integrations": ["stripe", "sendgrid"],
    },
    "landing": {
        "projectType": "landing",
        "businessType": "startup",
        "targetAudience": "b2c",
        "features": {"heroSection": True, "featuresShowcase": True, "testimonials": True,
                     "pricingSection": False, "contactForm": True, "newsletter": True},
        "pages": ["index", "about", "contact"],
        "components": ["Hero", "Features", "Testimonials", "CTA", "ContactForm", "Footer"],
        "designSystem": {"primaryColor": "#0EA5E9", "style": "bold", "cta": "Join the waitlist"},
        "seo": {"title": "Launching soon", "description": "Be the first to know."},
    },
    "dashboard": {
        "projectType": "dashboard",
        "targetAudience": "analysts",
        "features": {"charts": True, "filters": True, "dateRange": True, "export": True,
                     "realtime": False, "alerts": False},
        "pages": ["overview", "reports", "settings"],
        "components": ["Sidebar", "KpiCard", "LineChart", "BarChart", "FilterBar"],
        "dataSources": ["rest-api"],
        "chartTypes": ["line", "bar"],
    },
}

GENERIC_BLUEPRINT = {
    "projectType": "webapp",
    "framework": "react",
    "features": ["responsive layout", "contact form"],
    "components": ["Header", "Footer"],
    "pages": ["home"],
    "apis": [],
    "database": False,
    "authentication": False,
    "styling": "tailwind",
    "complexity": "simple",
}

DESIGN_SYSTEM = {
    "colors": {"primary": "#4F46E5", "secondary": "#0EA5E9", "accent": "#F59E0B",
               "background": "#FFFFFF", "text": "#111827"},
    "typography": {"headings": "Inter", "body": "Inter", "sizes": {"h1": "3rem", "body": "1rem"}},
    "spacing": {"small": "0.5rem", "medium": "1rem", "large": "2rem", "xlarge": "4rem"},
    "borderRadius": "0.5rem",
    "shadows": {"small": "0 1px 2px rgba(0,0,0,.05)", "medium": "0 4px 6px rgba(0,0,0,.1)",
                "large": "0 10px 15px rgba(0,0,0,.1)"},
    "animations": True,
    "darkMode": False,
}

COMPONENT_TEMPLATE = """```jsx
import React from 'react';

export default function {name}() {{
  return (
    <section className="p-4">
      <h2 className="text-xl font-semibold">{name}</h2>
    </section>
  );
}}
```"""

E2E_TEST = """```ts
import { test, expect } from '@playwright/test';

test('home page loads', async ({ page }) => {
  await page.goto('/');
  await expect(page).toHaveTitle(/.+/);
});
```"""

UNIT_TEST_TEMPLATE = """```tsx
import {{ render, screen }} from '@testing-library/react';
import {name} from '../../src/components/{name}';

describe('{name}', () => {{
  it('renders', () => {{
    render(<{name} />);
    expect(screen.getByText('{name}')).toBeTruthy();
  }});
}});
```"""


class OfflineModelClient:
    """ModelClient that never leaves the process"""

    def __init__(self, response_delay: float = 0.0, chunk_size: int = 40):
        self.response_delay = response_delay
        self.chunk_size = chunk_size
        self.call_count = 0
        self.responses: Dict[str, str] = {}
        logger.info("[OfflineModelClient] Mock model mode enabled")

    def set_response(self, keyword: str, response: str) -> None:
        """Reply with ``response`` whenever ``keyword`` appears in the prompt"""
        self.responses[keyword] = response

    def respond(self, prompt: str, system: Optional[str] = None) -> str:
        lower = prompt.lower()

        for keyword, response in self.responses.items():
            if keyword.lower() in lower:
                return response

        if lower.startswith("analyze this request"):
            return json.dumps(GENERIC_BLUEPRINT, indent=2)

        if lower.startswith("create design system"):
            return json.dumps(DESIGN_SYSTEM, indent=2)

        component_match = re.search(r'react component "(\w+)"', prompt, re.IGNORECASE)
        if component_match:
            return COMPONENT_TEMPLATE.format(name=component_match.group(1))

        if "playwright e2e" in lower:
            return E2E_TEST

        if "vitest unit tests" in lower:
            name_match = re.search(r"export default function (\w+)", prompt)
            return UNIT_TEST_TEMPLATE.format(name=name_match.group(1) if name_match else "Component")

        domain_match = re.search(r'"projectType":\s*"(\w+)"', prompt)
        if domain_match and domain_match.group(1) in DOMAIN_BLUEPRINTS:
            return "```json\n" + json.dumps(DOMAIN_BLUEPRINTS[domain_match.group(1)], indent=2) + "\n```"

        return "Mock response"

    async def invoke(self, prompt: str, params: ModelParameters) -> str:
        self.call_count += 1
        if self.response_delay:
            await asyncio.sleep(self.response_delay)
        return self.respond(prompt, params.system)

    async def invoke_streaming(self, prompt: str, params: ModelParameters) -> AsyncIterator[str]:
        self.call_count += 1
        response = self.respond(prompt, params.system)
        for i in range(0, len(response), self.chunk_size):
            if self.response_delay:
                await asyncio.sleep(self.response_delay)
            yield response[i:i + self.chunk_size]
