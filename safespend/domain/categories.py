"""Keyword-based mapping of free-text categories to spending classes"""

from typing import Optional
from safespend.domain.models import CategoryClass

FIXED_CATEGORY_KEYWORDS = frozenset({
    "housing", "rent", "mortgage", "utilities", "internet", "phone",
    "insurance", "loan", "debt", "subscription", "subscriptions",
})

SINKING_CATEGORY_KEYWORDS = frozenset({
    "savings", "sinking", "emergency", "vacation", "education", "investment", "investments",
})


def normalize_category(category: Optional[str]) -> str:
    return category.strip().lower() if category else ""


def classify_category(category: Optional[str]) -> CategoryClass:
    """
    Classify a category label as Fixed, Sinking or Variable.

    Matching is by keyword substring on the trimmed, lower-cased label.
    Fixed keywords take priority over Sinking ones; anything unmatched
    (including empty or missing labels) is Variable.
    """
    normalized = normalize_category(category)
    if not normalized:
        return CategoryClass.VARIABLE
    if any(keyword in normalized for keyword in FIXED_CATEGORY_KEYWORDS):
        return CategoryClass.FIXED
    if any(keyword in normalized for keyword in SINKING_CATEGORY_KEYWORDS):
        return CategoryClass.SINKING
    return CategoryClass.VARIABLE


def is_fixed(category: Optional[str]) -> bool:
    return classify_category(category) is CategoryClass.FIXED


def is_sinking(category: Optional[str]) -> bool:
    return classify_category(category) is CategoryClass.SINKING


def is_variable(category: Optional[str]) -> bool:
    return classify_category(category) is CategoryClass.VARIABLE
