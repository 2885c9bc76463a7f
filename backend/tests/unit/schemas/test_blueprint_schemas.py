"""
Unit Tests for Blueprint Schemas
"""
import pytest
from pydantic import ValidationError

from genforge.schemas.blueprint import (
    BLUEPRINT_TYPES,
    DashboardBlueprint,
    EcommerceBlueprint,
    GenericBlueprint,
    LandingBlueprint,
    SaasBlueprint,
    build_blueprint,
)


class TestBuildBlueprint:
    """Domain variant selection"""

    @pytest.mark.parametrize("domain,cls", [
        ("ecommerce", EcommerceBlueprint),
        ("saas", SaasBlueprint),
        ("landing", LandingBlueprint),
        ("dashboard", DashboardBlueprint),
    ])
    def test_variant_per_domain(self, domain, cls):
        blueprint = build_blueprint(domain, {"pages": ["home"], "components": ["Header"]})

        assert isinstance(blueprint, cls)
        assert blueprint.domain == domain
        assert BLUEPRINT_TYPES[domain] is cls

    def test_classified_domain_wins_over_echoed_type(self):
        blueprint = build_blueprint("saas", {"projectType": "ecommerce", "pages": ["login"]})

        assert isinstance(blueprint, SaasBlueprint)
        assert blueprint.to_dict()["projectType"] == "saas"

    def test_unknown_domain_is_generic(self):
        blueprint = build_blueprint("blog", {"projectType": "Personal Blog", "pages": ["home"]})

        assert isinstance(blueprint, GenericBlueprint)
        assert blueprint.project_type == "personal-blog"

    def test_aliased_fields(self, ecommerce_output):
        blueprint = build_blueprint("ecommerce", ecommerce_output)

        assert blueprint.business_type == "b2c"
        assert blueprint.product_category == "sneakers"
        assert blueprint.design_system == {"primaryColor": "#111111", "style": "minimal"}
        assert blueprint.to_dict()["productCategory"] == "sneakers"

    def test_unknown_fields_are_kept(self):
        blueprint = build_blueprint("landing", {"pages": [], "analytics": "plausible"})

        assert blueprint.to_dict()["analytics"] == "plausible"

    def test_wrong_type_raises(self):
        with pytest.raises(ValidationError):
            build_blueprint("ecommerce", {"businessType": 5})

    def test_non_list_pages_raise(self):
        with pytest.raises(ValidationError):
            build_blueprint("ecommerce", {"pages": 5})


class TestUnitNormalization:
    """Pages and components arrive in several shapes"""

    def test_objects_and_duplicates(self):
        blueprint = LandingBlueprint(
            pages=[{"name": "Home"}, {"path": "/about"}, "home", "", None],
            components=["Hero", "hero", {"title": "CTA"}, {"unused": 1}],
        )

        assert blueprint.pages == ["Home", "/about"]
        assert blueprint.components == ["Hero", "CTA"]

    def test_single_string_becomes_list(self):
        assert LandingBlueprint(pages="index").pages == ["index"]

    def test_saas_integrations(self):
        assert SaasBlueprint(integrations=[{"name": "stripe"}, "stripe", "sendgrid"]).integrations == ["stripe", "sendgrid"]


class TestFeatures:
    def test_dict_features(self):
        blueprint = EcommerceBlueprint(features={"cart": True, "wishlist": False}, pages=["Checkout"])

        assert blueprint.enabled_features() == ["cart"]
        assert blueprint.has_feature("CART")
        assert not blueprint.has_feature("wishlist")
        assert blueprint.has_feature("checkout")

    def test_list_features(self):
        blueprint = GenericBlueprint(features=["contact form", {"name": "blog"}])

        assert blueprint.enabled_features() == ["contact form", "blog"]

    def test_none_features(self):
        assert SaasBlueprint(features=None).features == {}
