"""
Product category selection for scoped regulatory context.

A label is pre-classified from its text with keyword rules. When there is
no text (image uploads) or no rule matches, the category reported by the
session's previous analysis is used instead. No category means the full
document set.

Dependencies: None
System role: Narrows regulatory documents to the product being checked
"""

import enum
import logging

logger = logging.getLogger(__name__)


class ProductCategory(str, enum.Enum):
    """Regulatory product categories, as reported in product_category."""

    CONVENTIONAL_FOOD = "CONVENTIONAL_FOOD"
    DIETARY_SUPPLEMENT = "DIETARY_SUPPLEMENT"
    ALCOHOLIC_BEVERAGE = "ALCOHOLIC_BEVERAGE"
    NON_ALCOHOLIC_BEVERAGE = "NON_ALCOHOLIC_BEVERAGE"


# First matching rule wins; supplement and alcohol markers are the most specific
_KEYWORD_RULES: tuple[tuple[ProductCategory, tuple[str, ...]], ...] = (
    (ProductCategory.DIETARY_SUPPLEMENT, ("supplement facts", "dietary supplement")),
    (
        ProductCategory.ALCOHOLIC_BEVERAGE,
        ("government warning", "alc/vol", "alc. by vol", "% alc", "alcohol by volume"),
    ),
    (ProductCategory.NON_ALCOHOLIC_BEVERAGE, ("fl oz", "fl. oz", "fluid ounce")),
    (ProductCategory.CONVENTIONAL_FOOD, ("nutrition facts",)),
)


def classify_label_text(text: str | None) -> ProductCategory | None:
    """
    Pre-classify label text by keyword.

    Args:
        text: Label text (typed or extracted from a PDF)

    Returns:
        ProductCategory | None: First matching category, None if nothing matches
    """
    if not text:
        return None
    lowered = text.lower()
    for category, keywords in _KEYWORD_RULES:
        if any(keyword in lowered for keyword in keywords):
            return category
    return None


def parse_product_category(value: str | None) -> ProductCategory | None:
    """
    Read a product_category value from a report.

    Args:
        value: Value such as "DIETARY_SUPPLEMENT" or "dietary supplement"

    Returns:
        ProductCategory | None: Parsed category, None when missing or unknown
    """
    if not value:
        return None
    normalized = value.strip().upper().replace("-", "_").replace(" ", "_")
    try:
        return ProductCategory(normalized)
    except ValueError:
        logger.debug(f"{__name__}:parse_product_category - Unknown category {value!r}")
        return None


def select_product_category(
    text: str | None,
    previous_category: str | None = None,
) -> ProductCategory | None:
    """
    Choose the category used to scope regulatory documents.

    Args:
        text: Label text, None for image content
        previous_category: product_category of the session's latest analysis

    Returns:
        ProductCategory | None: Text classification, else the previous category
    """
    return classify_label_text(text) or parse_product_category(previous_category)
