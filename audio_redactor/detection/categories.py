"""
PII category catalog.

Detections carry one of the subcategory ids below. Subcategories marked
critical are redacted automatically when detections arrive; the rest are
suggestions the operator toggles by hand.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional


@dataclass(frozen=True)
class RedactionSubcategory:
    id: str
    label: str
    description: str
    critical: bool = False  # Auto-redact


@dataclass(frozen=True)
class RedactionCategory:
    id: str
    label: str
    description: str
    subcategories: List[RedactionSubcategory] = field(default_factory=list)


REDACTION_CATEGORIES: List[RedactionCategory] = [
    RedactionCategory(
        "personal-identifiers", "Personal Identifiers", "Names and personal identifiers",
        [
            RedactionSubcategory("full-names", "Full Names", "Complete names (first and last)", critical=True),
            RedactionSubcategory("first-names", "First Names", "First names only", critical=True),
            RedactionSubcategory("last-names", "Last Names", "Last names only", critical=True),
        ],
    ),
    RedactionCategory(
        "contact-information", "Contact Information", "Phone numbers, emails, and addresses",
        [
            RedactionSubcategory("phone-numbers", "Phone Numbers", "All phone number formats", critical=True),
            RedactionSubcategory("email-addresses", "Email Addresses", "Email addresses"),
            RedactionSubcategory("physical-addresses", "Physical Addresses", "Complete street addresses", critical=True),
        ],
    ),
    RedactionCategory(
        "location-information", "Location Information", "Specific places and locations",
        [
            RedactionSubcategory("street-names", "Street Names", "Street names and numbers"),
            RedactionSubcategory("city-names", "City Names", "City names"),
            RedactionSubcategory("state-names", "State Names", "State names"),
            RedactionSubcategory("zip-codes", "Zip Codes", "Postal codes"),
            RedactionSubcategory("landmarks", "Landmarks", "Notable landmarks and locations"),
        ],
    ),
    RedactionCategory(
        "vehicle-information", "Vehicle Information", "Vehicle-related information",
        [
            RedactionSubcategory("license-plates", "License Plate Numbers", "Vehicle license plates", critical=True),
            RedactionSubcategory("vehicle-make-model", "Make and Model", "Vehicle make and model"),
            RedactionSubcategory("vin-numbers", "VIN Numbers", "Vehicle identification numbers"),
            RedactionSubcategory("vehicle-colors", "Vehicle Colors", "Vehicle color descriptions"),
        ],
    ),
    RedactionCategory(
        "government-ids", "Government IDs", "Government-issued identification numbers",
        [
            RedactionSubcategory("ssn", "Social Security Numbers", "SSN in any format", critical=True),
            RedactionSubcategory("drivers-license", "Driver's License Numbers", "Driver's license numbers", critical=True),
            RedactionSubcategory("passport-numbers", "Passport Numbers", "Passport identification numbers"),
        ],
    ),
    RedactionCategory(
        "financial-information", "Financial Information", "Financial and payment information",
        [
            RedactionSubcategory("credit-cards", "Credit Card Numbers", "Credit card numbers"),
            RedactionSubcategory("bank-accounts", "Bank Account Numbers", "Bank account numbers"),
        ],
    ),
    RedactionCategory(
        "dates-times", "Dates & Times", "Temporal information",
        [
            RedactionSubcategory("birth-dates", "Birth Dates", "Dates of birth", critical=True),
            RedactionSubcategory("specific-dates", "Specific Dates", "Exact dates mentioned"),
            RedactionSubcategory("exact-times", "Exact Times", "Specific times mentioned"),
        ],
    ),
    RedactionCategory(
        "organizations", "Organizations", "Companies and organizations",
        [
            RedactionSubcategory("company-names", "Company Names", "Business and company names"),
            RedactionSubcategory("organization-names", "Organization Names", "Non-profit and organization names"),
        ],
    ),
]


def get_all_subcategory_ids() -> List[str]:
    return [sub.id for category in REDACTION_CATEGORIES for sub in category.subcategories]


def get_critical_subcategory_ids() -> List[str]:
    return [
        sub.id
        for category in REDACTION_CATEGORIES
        for sub in category.subcategories
        if sub.critical
    ]


def find_subcategory(subcategory_id: str) -> Optional[RedactionSubcategory]:
    for category in REDACTION_CATEGORIES:
        for sub in category.subcategories:
            if sub.id == subcategory_id:
                return sub
    return None


def is_critical_category(subcategory_id: str) -> bool:
    sub = find_subcategory(subcategory_id)
    return sub.critical if sub else False


def get_category_label(subcategory_id: str) -> str:
    sub = find_subcategory(subcategory_id)
    return sub.label if sub else subcategory_id


def auto_redact_predicate(categories: Optional[Iterable[str]] = None) -> Callable[[str], bool]:
    """
    Build the "is this category auto-appliable" check.

    Args:
        categories: Explicit category ids to auto-redact. Empty or None
            falls back to the catalog's critical flags.
    """
    chosen = set(categories or [])
    if not chosen:
        return is_critical_category
    return lambda category: category in chosen
