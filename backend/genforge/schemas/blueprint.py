"""
Blueprint schemas - the Architecture phase output.

One variant per domain, discriminated on ``projectType``:

    EcommerceBlueprint | SaasBlueprint | LandingBlueprint | DashboardBlueprint

GenericBlueprint is produced by the non-templated fallback analysis and
accepts any project type.
"""

import re
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


_NAME_KEYS = ("name", "title", "id", "path")


def _unit_name(item: Any) -> str:
    """Pages/components may come back as strings or small objects"""
    if isinstance(item, dict):
        for key in _NAME_KEYS:
            if item.get(key):
                return str(item[key]).strip()
        return ""
    if item is None:
        return ""
    return str(item).strip()


def _normalize_units(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (str, dict)):
        value = [value]
    elif not isinstance(value, (list, tuple, set)):
        raise ValueError(f"expected a list, got {type(value).__name__}")
    names: List[str] = []
    seen = set()
    for item in value:
        name = _unit_name(item)
        key = name.lower()
        if name and key not in seen:
            seen.add(key)
            names.append(name)
    return names


class BaseBlueprint(BaseModel):
    """Fields every blueprint shares"""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    features: Union[Dict[str, Any], List[str]] = Field(default_factory=dict)
    pages: List[str] = Field(default_factory=list)
    components: List[str] = Field(default_factory=list)

    @field_validator("pages", "components", mode="before")
    @classmethod
    def normalize_units(cls, value: Any) -> List[str]:
        return _normalize_units(value)

    @field_validator("features", mode="before")
    @classmethod
    def normalize_features(cls, value: Any) -> Union[Dict[str, Any], List[str]]:
        if value is None:
            return {}
        if isinstance(value, str):
            return [value]
        if isinstance(value, (list, tuple)):
            return [_unit_name(item) for item in value if _unit_name(item)]
        return value

    @property
    def domain(self) -> str:
        return getattr(self, "project_type")

    def enabled_features(self) -> List[str]:
        """Feature names that are switched on"""
        if isinstance(self.features, dict):
            return [name for name, enabled in self.features.items() if enabled]
        return list(self.features)

    def has_feature(self, feature: str) -> bool:
        needle = feature.lower()
        if any(name.lower() == needle for name in self.enabled_features()):
            return True
        return any(needle in unit.lower() for unit in self.pages + self.components)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class EcommerceBlueprint(BaseBlueprint):
    project_type: Literal["ecommerce"] = Field(default="ecommerce", alias="projectType")
    business_type: Optional[str] = Field(default=None, alias="businessType")
    product_category: Optional[str] = Field(default=None, alias="productCategory")
    design_system: Optional[Dict[str, Any]] = Field(default=None, alias="designSystem")


class SaasBlueprint(BaseBlueprint):
    project_type: Literal["saas"] = Field(default="saas", alias="projectType")
    business_model: Optional[str] = Field(default=None, alias="businessModel")
    target_audience: Optional[str] = Field(default=None, alias="targetAudience")
    integrations: List[str] = Field(default_factory=list)

    @field_validator("integrations", mode="before")
    @classmethod
    def normalize_integrations(cls, value: Any) -> List[str]:
        return _normalize_units(value)


class LandingBlueprint(BaseBlueprint):
    project_type: Literal["landing"] = Field(default="landing", alias="projectType")
    business_type: Optional[str] = Field(default=None, alias="businessType")
    target_audience: Optional[str] = Field(default=None, alias="targetAudience")
    design_system: Optional[Dict[str, Any]] = Field(default=None, alias="designSystem")
    seo: Optional[Dict[str, Any]] = None


class DashboardBlueprint(BaseBlueprint):
    project_type: Literal["dashboard"] = Field(default="dashboard", alias="projectType")
    target_audience: Optional[str] = Field(default=None, alias="targetAudience")
    data_sources: List[str] = Field(default_factory=list, alias="dataSources")
    chart_types: List[str] = Field(default_factory=list, alias="chartTypes")

    @field_validator("data_sources", "chart_types", mode="before")
    @classmethod
    def normalize_lists(cls, value: Any) -> List[str]:
        return _normalize_units(value)


class GenericBlueprint(BaseBlueprint):
    """Output of the fallback analysis; project type is free text"""

    project_type: str = Field(default="webapp", alias="projectType")
    framework: Optional[str] = None
    apis: List[str] = Field(default_factory=list)
    database: bool = False
    authentication: bool = False
    styling: Optional[str] = None
    complexity: Optional[str] = None

    @field_validator("project_type", mode="before")
    @classmethod
    def normalize_project_type(cls, value: Any) -> str:
        text = str(value or "").strip().lower()
        return re.sub(r"\s+", "-", text) or "webapp"

    @field_validator("apis", mode="before")
    @classmethod
    def normalize_apis(cls, value: Any) -> List[str]:
        return _normalize_units(value)


DomainBlueprint = Annotated[
    Union[EcommerceBlueprint, SaasBlueprint, LandingBlueprint, DashboardBlueprint],
    Field(discriminator="project_type"),
]

Blueprint = Union[EcommerceBlueprint, SaasBlueprint, LandingBlueprint, DashboardBlueprint, GenericBlueprint]

_domain_adapter = TypeAdapter(DomainBlueprint)

BLUEPRINT_TYPES = {
    "ecommerce": EcommerceBlueprint,
    "saas": SaasBlueprint,
    "landing": LandingBlueprint,
    "dashboard": DashboardBlueprint,
}


def build_blueprint(domain: str, data: Dict[str, Any]) -> Blueprint:
    """
    Validate a model-produced mapping into the blueprint variant for ``domain``.
    The classified domain wins over whatever projectType the model echoed back.

    Raises:
        pydantic.ValidationError: if the mapping does not fit the variant
    """
    if domain not in BLUEPRINT_TYPES:
        return GenericBlueprint.model_validate(data)
    payload = dict(data)
    payload.pop("project_type", None)
    payload["projectType"] = domain
    return _domain_adapter.validate_python(payload)
