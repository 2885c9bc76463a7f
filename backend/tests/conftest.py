"""
GenForge - Test Configuration and Fixtures
"""
import json
import os
from typing import Any, AsyncGenerator, Dict

import pytest

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['USE_MOCK_MODEL'] = 'true'
os.environ['ANTHROPIC_API_KEY'] = 'test-api-key'

from genforge.core.config import Settings
from genforge.core.context import GenerationContext, create_context
from genforge.modules.prompts.registry import PromptRegistry
from genforge.modules.prompts.templates import BUILTIN_TEMPLATES
from genforge.services.execution_cache import ExecutionCache
from genforge.utils.offline_model_client import OfflineModelClient

from mocks.mock_model import MockModelClient


ECOMMERCE_OUTPUT: Dict[str, Any] = {
    "projectType": "ecommerce",
    "businessType": "b2c",
    "productCategory": "sneakers",
    "features": {"cart": True, "checkout": True, "search": True, "wishlist": False},
    "pages": ["home", "products", "product-detail", "cart", "checkout", "confirmation"],
    "components": ["Header", "ProductCard", "CartItem", "CheckoutForm", "SearchBar"],
    "designSystem": {"primaryColor": "#111111", "style": "minimal"},
}

THIN_ECOMMERCE_OUTPUT: Dict[str, Any] = {
    "projectType": "ecommerce",
    "features": {},
    "pages": ["home", "about"],
    "components": ["Header"],
}


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file"""
    return Settings(
        _env_file=None,
        USE_MOCK_MODEL=True,
        MODEL_MAX_RETRIES=2,
        MODEL_RETRY_BASE_DELAY=0.0,
        MODEL_RETRY_MAX_DELAY=0.0,
    )


@pytest.fixture
def mock_model() -> MockModelClient:
    return MockModelClient()


@pytest.fixture
def offline_model() -> OfflineModelClient:
    return OfflineModelClient()


@pytest.fixture
def registry(mock_model: MockModelClient) -> PromptRegistry:
    """Registry with the built-in templates over the scripted mock"""
    registry = PromptRegistry(mock_model, cache=ExecutionCache(), quality_threshold=7.0)
    for template in BUILTIN_TEMPLATES:
        registry.register_prompt(template)
    return registry


@pytest.fixture
def ecommerce_output() -> Dict[str, Any]:
    return json.loads(json.dumps(ECOMMERCE_OUTPUT))


@pytest.fixture
def ecommerce_reply() -> str:
    return "Here is your blueprint:\n```json\n" + json.dumps(ECOMMERCE_OUTPUT, indent=2) + "\n```"


@pytest.fixture
def thin_ecommerce_reply() -> str:
    return json.dumps(THIN_ECOMMERCE_OUTPUT)


@pytest.fixture
async def context(settings: Settings, offline_model: OfflineModelClient) -> AsyncGenerator[GenerationContext, None]:
    """Fully wired engine over the offline model, worker running"""
    ctx = create_context(settings, model_client=offline_model)
    ctx.start()
    yield ctx
    await ctx.stop()
