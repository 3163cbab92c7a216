"""
Matter type normalization: human-readable labels -> canonical snake_case codes.
"""

import re
from typing import Dict, List, Optional

DEFAULT_MATTER_CODE = "general_consultation"

# label -> (code, aliases)
MATTER_TYPES: Dict[str, tuple] = {
    "Family Law": ("family_law", ["Divorce", "Child Custody"]),
    "Employment Law": ("employment_law", ["Workplace"]),
    "Landlord/Tenant": ("landlord_tenant", ["Tenant Rights Law", "Landlord Tenant", "Landlord-Tenant"]),
    "Personal Injury": ("personal_injury", []),
    "Business Law": ("business_law", []),
    "Criminal Law": ("criminal_law", ["Criminal Defense"]),
    "Civil Law": ("civil_law", []),
    "Contract Review": ("contract_review", []),
    "Property Law": ("property_law", ["Real Estate"]),
    "Administrative Law": ("administrative_law", []),
    "General Consultation": ("general_consultation", ["General Inquiry"]),
}


def _build_lookup() -> Dict[str, str]:
    lookup = {}
    for label, (code, aliases) in MATTER_TYPES.items():
        for name in [label, *aliases, code]:
            lookup[name.strip().lower()] = code
    return lookup


_LOOKUP = _build_lookup()


def normalize_matter_type(matter_type: Optional[str]) -> str:
    """
    Map a matter type label to its canonical code.

    Unknown labels are slugified ("Immigration Law" -> "immigration_law").
    """
    if not matter_type or not matter_type.strip():
        return DEFAULT_MATTER_CODE

    trimmed = matter_type.strip()
    code = _LOOKUP.get(trimmed.lower())
    if code:
        return code

    slug = re.sub(r"[^a-z0-9]+", "_", trimmed.lower()).strip("_")
    return slug or DEFAULT_MATTER_CODE


def known_labels() -> List[str]:
    return list(MATTER_TYPES.keys())
