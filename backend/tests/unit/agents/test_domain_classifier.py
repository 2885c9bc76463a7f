"""
Unit Tests for the Domain Classifier
"""
import pytest

from genforge.modules.agents.domain_classifier_agent import DEFAULT_DOMAIN, DOMAIN_KEYWORDS, DomainClassifier


class TestDomainClassifier:
    """Keyword scoring and tie-breaking"""

    @pytest.mark.parametrize("prompt,expected", [
        ("Build an online store to sell shoes", "ecommerce"),
        ("A subscription management platform for gyms", "saas"),
        ("Landing page for our startup launch", "landing"),
        ("Analytics dashboard with charts and metrics", "dashboard"),
    ])
    def test_detects_domain(self, prompt, expected):
        assert DomainClassifier().detect(prompt) == expected

    def test_matching_is_case_insensitive(self):
        assert DomainClassifier().detect("SHOP FOR SHOES") == "ecommerce"

    def test_substring_matching(self):
        # "shopping" contains "shop"
        assert DomainClassifier().detect("shopping") == "ecommerce"

    def test_tie_goes_to_first_declared_domain(self):
        classifier = DomainClassifier()

        # "dashboard" is a keyword of both saas and dashboard
        assert classifier.scores("dashboard")["saas"] == classifier.scores("dashboard")["dashboard"] == 1
        assert classifier.detect("dashboard") == "saas"

    def test_no_match_returns_default(self):
        assert DomainClassifier().detect("hello world") == DEFAULT_DOMAIN == "landing"

    def test_empty_and_none_return_default(self):
        classifier = DomainClassifier()

        assert classifier.detect("") == "landing"
        assert classifier.detect(None) == "landing"

    def test_custom_default_domain(self):
        assert DomainClassifier(default_domain="saas").detect("xyz") == "saas"

    def test_scores_follow_declaration_order(self):
        scores = DomainClassifier().scores("store")

        assert list(scores) == list(DOMAIN_KEYWORDS)
        assert scores["ecommerce"] == 1

    def test_custom_keywords(self):
        classifier = DomainClassifier(keywords={"blog": ("blog", "post"), "docs": ("docs", "post")})

        assert classifier.domains == ["blog", "docs"]
        assert classifier.detect("a docs site with posts") == "docs"
        assert classifier.detect("post") == "blog"

    def test_deterministic(self):
        classifier = DomainClassifier()
        prompt = "store with a dashboard"

        assert len({classifier.detect(prompt) for _ in range(20)}) == 1
