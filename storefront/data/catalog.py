# storefront/data/catalog.py
"""
Static service catalog.

Prices are whole currency units. Plan ids are stable and referenced by cart
and order line items, so renaming one orphans existing carts.
"""
from decimal import Decimal

SERVICES = [
    {
        "slug": "netflix",
        "name": "Netflix",
        "category": "streaming",
        "description": "Stream unlimited movies and TV shows.",
        "plans": [
            {"id": "netflix-tier-1", "name": "Netflix Standard - 1 month", "duration_months": 1, "price": Decimal("2800")},
            {"id": "netflix-tier-2", "name": "Netflix Standard - 3 months", "duration_months": 3, "price": Decimal("7900")},
            {"id": "netflix-tier-3", "name": "Netflix Premium - 12 months", "duration_months": 12, "price": Decimal("29000")},
        ],
    },
    {
        "slug": "spotify",
        "name": "Spotify",
        "category": "streaming",
        "description": "Music for everyone. Ad-free listening.",
        "plans": [
            {"id": "spotify-individual-1", "name": "Individual - 1 month", "duration_months": 1, "price": Decimal("650")},
            {"id": "spotify-duo-1", "name": "Duo - 1 month", "duration_months": 1, "price": Decimal("850")},
            {"id": "spotify-family-1", "name": "Family - 1 month", "duration_months": 1, "price": Decimal("1100")},
        ],
    },
    {
        "slug": "adobe-creative-cloud",
        "name": "Adobe Creative Cloud",
        "category": "professional",
        "description": "The world's best creative apps and services.",
        "plans": [
            {"id": "adobe-photography-1", "name": "Photography (20GB) - 1 month", "duration_months": 1, "price": Decimal("2900")},
            {"id": "adobe-all-apps-1", "name": "All Apps - 1 month", "duration_months": 1, "price": Decimal("15500")},
        ],
    },
    {
        "slug": "notion",
        "name": "Notion",
        "category": "professional",
        "description": "The all-in-one workspace for notes, tasks, wikis, and databases.",
        "plans": [
            {"id": "notion-plus-1", "name": "Plus - 1 month", "duration_months": 1, "price": Decimal("2300")},
            {"id": "notion-business-1", "name": "Business - 1 month", "duration_months": 1, "price": Decimal("4200")},
        ],
    },
    {
        "slug": "figma",
        "name": "Figma",
        "category": "professional",
        "description": "The collaborative interface design tool.",
        "plans": [
            {"id": "figma-professional-1", "name": "Professional - 1 month", "duration_months": 1, "price": Decimal("3400")},
        ],
    },
    {
        "slug": "disney-plus",
        "name": "Disney+",
        "category": "streaming",
        "description": "The streaming home of your favorite stories.",
        "plans": [
            {"id": "disney-basic-1", "name": "Basic (With Ads) - 1 month", "duration_months": 1, "price": Decimal("2200")},
            {"id": "disney-premium-1", "name": "Premium (No Ads) - 1 month", "duration_months": 1, "price": Decimal("3900")},
        ],
    },
]

_PLANS_BY_ID = {
    plan["id"]: {**plan, "service_slug": service["slug"], "service_name": service["name"]}
    for service in SERVICES
    for plan in service["plans"]
}


def list_services(category: str | None = None) -> list[dict]:
    if category is None:
        return list(SERVICES)
    return [s for s in SERVICES if s["category"] == category]


def get_service(slug: str) -> dict | None:
    return next((s for s in SERVICES if s["slug"] == slug), None)


def get_plan(plan_id: str) -> dict | None:
    return _PLANS_BY_ID.get(plan_id)


def plan_ids() -> set[str]:
    return set(_PLANS_BY_ID)
