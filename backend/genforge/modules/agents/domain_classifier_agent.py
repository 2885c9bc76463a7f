"""
Domain Classifier

Keyword-based classification of a request into one of the known domains.
This is the first layer of the Architecture phase: the detected domain picks
the prompt template (``<domain>-v1``).

Matching is plain substring search on the lower-cased prompt, so "shopping"
counts for "shop". The domain with the most matching keywords wins; on a tie
the domain declared first in DOMAIN_KEYWORDS wins. No match at all returns
the configured default domain.
"""

from typing import Dict, List, Optional, Tuple

from genforge.core.logging_config import logger


# Declaration order is the tie-break order
DOMAIN_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "ecommerce": (
        "shop", "store", "product", "cart", "buy", "sell",
        "ecommerce", "marketplace", "retail",
    ),
    "saas": (
        "saas", "dashboard", "subscription", "platform",
        "management", "software", "service",
    ),
    "landing": (
        "landing", "marketing", "promotion", "startup", "homepage",
        "website", "launch", "waitlist", "coming soon", "beta",
    ),
    "dashboard": (
        "dashboard", "analytics", "metrics", "charts",
        "data", "reporting", "insights",
    ),
}

DEFAULT_DOMAIN = "landing"


class DomainClassifier:
    """Deterministic keyword classifier"""

    def __init__(
        self,
        keywords: Optional[Dict[str, Tuple[str, ...]]] = None,
        default_domain: str = DEFAULT_DOMAIN
    ):
        self.keywords = dict(keywords or DOMAIN_KEYWORDS)
        self.default_domain = default_domain

    @property
    def domains(self) -> List[str]:
        return list(self.keywords)

    def scores(self, text: str) -> Dict[str, int]:
        """Per-domain keyword hit counts, in declaration order"""
        lower = (text or "").lower()
        return {
            domain: sum(1 for word in words if word in lower)
            for domain, words in self.keywords.items()
        }

    def detect(self, text: str) -> str:
        scores = self.scores(text)

        best_domain = None
        best_score = 0
        for domain, score in scores.items():
            # Strictly greater: earlier domains keep ties
            if score > best_score:
                best_domain, best_score = domain, score

        if best_domain is None:
            logger.info(f"[DomainClassifier] No keyword match, defaulting to '{self.default_domain}'")
            return self.default_domain

        logger.info(f"[DomainClassifier] Detected '{best_domain}' scores={scores}")
        return best_domain
