"""Pricing Service - plan prices with the best active discount applied"""
from typing import Dict, List, Optional
from coachhub.config.settings import (
    PLAN_PRICES, PLAN_NAMES, PLAN_DURATIONS, PLAN_FEATURES, POPULAR_PLAN
)
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.utils.cache.cache_utils import api_cache, generate_key, PRICING_CACHE_PREFIX
from coachhub.utils.formatting.json_utils import sanitize_mongo_document
from coachhub.utils.time.timeutils import utc_now

def apply_discount(original_price: int, percentage: float) -> int:
    return round(original_price - original_price * percentage / 100)

def has_uses_left(discount: Dict) -> bool:
    max_uses = discount.get("maxUses")
    return max_uses is None or discount.get("currentUses", 0) < max_uses

def best_discount_for(plan_type: str, discounts: List[Dict]) -> Optional[Dict]:
    candidates = [d for d in discounts if plan_type in d.get("planTypes", []) and has_uses_left(d)]
    if not candidates:
        return None
    return max(candidates, key=lambda d: d["discountPercentage"])

class PricingService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    def get_pricing(self) -> dict:
        cache_key = generate_key(PRICING_CACHE_PREFIX)
        cached = api_cache.get(cache_key)
        if cached:
            return cached

        discounts = self.repo_factory.get_discount_repo().find_active(utc_now())

        plans = []
        for plan_type, original_price in PLAN_PRICES.items():
            discount = best_discount_for(plan_type, discounts)
            percentage = discount["discountPercentage"] if discount else 0
            plans.append({
                "id": plan_type,
                "name": PLAN_NAMES[plan_type],
                "duration": PLAN_DURATIONS[plan_type],
                "price": apply_discount(original_price, percentage),
                "originalPrice": original_price,
                "discountPercentage": percentage,
                "discountName": discount["name"] if discount else None,
                "features": PLAN_FEATURES,
                "popular": plan_type == POPULAR_PLAN
            })

        result = {
            "plans": plans,
            "activeDiscounts": sanitize_mongo_document([
                {
                    "_id": d["_id"],
                    "name": d["name"],
                    "description": d.get("description", ""),
                    "discountPercentage": d["discountPercentage"],
                    "planTypes": d.get("planTypes", []),
                    "endDate": d["endDate"]
                }
                for d in discounts if has_uses_left(d)
            ])
        }
        api_cache.put(cache_key, result)
        return result
