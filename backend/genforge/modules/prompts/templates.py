"""
Prompt templates

A PromptTemplate is registered once at startup and read-only afterwards.
User text uses ``{{name}}`` placeholders filled from the execution variables.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from genforge.utils.model_client import ModelParameters


_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")

DEFAULT_MODEL = "claude-sonnet-4-20250514"


@dataclass(frozen=True)
class ValidationRules:
    """Minimum structure a template's output must have"""
    min_pages: int = 0
    min_components: int = 0
    required_features: tuple = ()

    def minimum_counts(self) -> Dict[str, int]:
        counts = {}
        if self.min_pages:
            counts["pages"] = self.min_pages
        if self.min_components:
            counts["components"] = self.min_components
        return counts


@dataclass(frozen=True)
class PromptTemplate:
    id: str
    name: str
    domain: str
    version: str
    system: str
    user_template: str
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    max_tokens: int = 3000
    validation: ValidationRules = field(default_factory=ValidationRules)
    structured_output: bool = True

    def render(self, variables: Dict[str, Any]) -> str:
        """Replace every known placeholder; unknown ones are left intact"""
        def substitute(match: "re.Match") -> str:
            key = match.group(1)
            if key not in variables:
                return match.group(0)
            value = variables[key]
            if isinstance(value, (dict, list)):
                return json.dumps(value, ensure_ascii=False)
            return str(value)

        return _PLACEHOLDER.sub(substitute, self.user_template)

    def parameters(self, model_override: Optional[str] = None) -> ModelParameters:
        return ModelParameters(
            model=model_override or self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            system=self.system,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "domain": self.domain,
            "version": self.version,
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "validation": {
                "min_pages": self.validation.min_pages,
                "min_components": self.validation.min_components,
                "required_features": list(self.validation.required_features),
            },
        }


# ========== Built-in domain templates ==========

ECOMMERCE_V1 = PromptTemplate(
    id="ecommerce-v1",
    name="E-commerce Generator",
    domain="ecommerce",
    version="1.0.0",
    system="You are an e-commerce expert. Generate complete e-commerce apps.",
    user_template="""Create an e-commerce application for: {{description}}

Return a JSON with this structure:
{
  "projectType": "ecommerce",
  "businessType": "b2c",
  "productCategory": "string",
  "features": {
    "cart": true,
    "checkout": true,
    "search": true,
    "filters": true,
    "userAccounts": true,
    "wishlist": boolean,
    "reviews": boolean
  },
  "pages": ["home", "products", "product-detail", "cart", "checkout", "confirmation", "account", "search-results"],
  "components": ["Header", "ProductCard", "CartItem", "CheckoutForm", "SearchBar", "FilterSidebar", "Footer"],
  "designSystem": {
    "primaryColor": "#hexcode",
    "style": "modern|classic|minimal"
  }
}""",
    validation=ValidationRules(min_pages=6, min_components=5, required_features=("cart", "checkout", "search")),
)

SAAS_V1 = PromptTemplate(
    id="saas-v1",
    name="SaaS Generator",
    domain="saas",
    version="1.0.0",
    system="You are a SaaS expert. Generate complete SaaS applications.",
    user_template="""Create a SaaS application for: {{description}}

Return a JSON with this structure:
{
  "projectType": "saas",
  "businessModel": "subscription",
  "targetAudience": "b2b|b2c",
  "features": {
    "authentication": true,
    "dashboard": true,
    "billing": true,
    "teamManagement": boolean,
    "api": boolean,
    "adminPanel": boolean
  },
  "pages": ["landing", "login", "register", "dashboard", "settings", "billing", "team", "admin"],
  "components": ["Navbar", "Sidebar", "MetricCard", "Chart", "DataTable", "UserMenu"],
  "integrations": ["stripe", "auth0", "sendgrid"]
}""",
    validation=ValidationRules(min_pages=5, min_components=5, required_features=("authentication", "dashboard", "billing")),
)

LANDING_V1 = PromptTemplate(
    id="landing-v1",
    name="Landing Page Generator",
    domain="landing",
    version="1.0.0",
    system="You are a landing page expert. Generate complete landing pages optimized for conversions.",
    user_template="""Create a landing page for: {{description}}

Return a JSON with this structure:
{
  "projectType": "landing",
  "businessType": "startup|product|service",
  "targetAudience": "b2b|b2c|developers",
  "features": {
    "heroSection": true,
    "featuresShowcase": true,
    "testimonials": boolean,
    "pricingSection": boolean,
    "contactForm": true,
    "newsletter": boolean,
    "socialProof": boolean
  },
  "pages": ["index", "about", "contact", "privacy", "terms"],
  "components": ["Hero", "Features", "Testimonials", "CTA", "ContactForm", "Footer"],
  "designSystem": {
    "primaryColor": "#hexcode",
    "style": "modern|minimal|bold",
    "cta": "primary button text"
  },
  "seo": {
    "title": "SEO title",
    "description": "Meta description"
  }
}""",
    validation=ValidationRules(min_pages=3, min_components=4, required_features=("heroSection", "contactForm")),
)

DASHBOARD_V1 = PromptTemplate(
    id="dashboard-v1",
    name="Analytics Dashboard Generator",
    domain="dashboard",
    version="1.0.0",
    system="You are a data visualization expert. Generate complete analytics dashboards.",
    user_template="""Create an analytics dashboard for: {{description}}

Return a JSON with this structure:
{
  "projectType": "dashboard",
  "targetAudience": "executives|analysts|operations",
  "features": {
    "charts": true,
    "filters": true,
    "dateRange": true,
    "export": boolean,
    "realtime": boolean,
    "alerts": boolean
  },
  "pages": ["overview", "reports", "analytics", "settings"],
  "components": ["Sidebar", "KpiCard", "LineChart", "BarChart", "DataTable", "FilterBar", "DateRangePicker"],
  "dataSources": ["rest-api", "csv"],
  "chartTypes": ["line", "bar", "pie"]
}""",
    validation=ValidationRules(min_pages=3, min_components=5, required_features=("charts", "filters")),
)


BUILTIN_TEMPLATES: List[PromptTemplate] = [ECOMMERCE_V1, SAAS_V1, LANDING_V1, DASHBOARD_V1]


def template_id_for_domain(domain: str, version: str = "v1") -> str:
    return f"{domain}-{version}"
