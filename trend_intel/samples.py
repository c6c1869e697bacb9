"""
Sample batch for the daily simulation.

Eight items from four sources, published 2, 4, ... 16 hours before *now*,
so every item falls inside the recency window.  Used by ``run.py --sample``
and by the end-to-end tests.
"""

from datetime import datetime, timedelta
from typing import List, Optional

from trend_intel.models import RawItem
from trend_intel.utils import utc_now

SAMPLE_ITEMS = [
    (
        "AI-Powered Personalization Reaches New Heights in 2025 Marketing",
        "https://example.com/ai-personalization-2025",
        "Marketing Brew",
        "Machine learning algorithms are now enabling hyper-personalized customer "
        "experiences across all touchpoints, with 73% improvement in conversion rates.",
    ),
    (
        "Sustainable Packaging Design Revolution Transforms E-commerce",
        "https://example.com/sustainable-packaging",
        "Creative Review",
        "Innovative biodegradable materials and minimal design approaches are reshaping "
        "how brands think about product packaging and environmental impact.",
    ),
    (
        "Voice Commerce Integration Drives 40% Increase in Smart Speaker Sales",
        "https://example.com/voice-commerce",
        "Adweek",
        "Voice-activated shopping experiences are becoming mainstream, with major brands "
        "investing heavily in conversational commerce platforms.",
    ),
    (
        "Gen Z's Social Media Habits Shift Towards Authentic Micro-Influencers",
        "https://example.com/gen-z-micro-influencers",
        "Campaign Live",
        "Young consumers increasingly trust recommendations from smaller, niche content "
        "creators over celebrity endorsements, changing influencer marketing strategies.",
    ),
    (
        "Augmented Reality Try-On Technology Reduces Return Rates by 35%",
        "https://example.com/ar-try-on",
        "Marketing Brew",
        "Fashion and beauty brands implementing AR fitting solutions see significant "
        "improvements in customer satisfaction and reduced logistics costs.",
    ),
    (
        "Data Privacy Regulations Drive New Customer Consent UX Patterns",
        "https://example.com/privacy-ux-patterns",
        "Creative Review",
        "Designers are creating more transparent and user-friendly ways to handle data "
        "consent, turning compliance into competitive advantage.",
    ),
    (
        "Livestream Shopping Events Generate $2.3B in Q4 Sales",
        "https://example.com/livestream-shopping",
        "Adweek",
        "Interactive video commerce platforms are creating new engagement models, "
        "blending entertainment with immediate purchase opportunities.",
    ),
    (
        "Brand Purpose Marketing Evolved: From Statements to Measurable Action",
        "https://example.com/brand-purpose-evolution",
        "Campaign Live",
        "Companies are moving beyond purpose-driven messaging to demonstrate real impact "
        "through transparent metrics and community partnerships.",
    ),
]


def sample_raw_items(now: Optional[datetime] = None) -> List[RawItem]:
    """Return the sample batch, item *i* published ``2 * (i + 1)`` hours ago."""
    now = now or utc_now()
    return [
        RawItem(
            title=title,
            url=url,
            source=source,
            published_at=now - timedelta(hours=2 * (i + 1)),
            summary=summary,
        )
        for i, (title, url, source, summary) in enumerate(SAMPLE_ITEMS)
    ]
