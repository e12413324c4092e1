from __future__ import annotations

"""Property info form validation."""

from typing import Dict

from ..models import PropertyInfo

MIN_NAME_LENGTH = 3
MIN_SURFACE = 10
MIN_CONSTRUCTION_YEAR = 1900


def validate_property_info(info: PropertyInfo, current_year: int) -> Dict[str, str]:
    """Return {field: message} for every invalid field; empty when valid."""
    errors: Dict[str, str] = {}
    if not info.name or len(info.name.strip()) < MIN_NAME_LENGTH:
        errors["name"] = f"Property name must be at least {MIN_NAME_LENGTH} characters."
    if info.surface is not None and info.surface < MIN_SURFACE:
        errors["surface"] = f"Surface must be at least {MIN_SURFACE} m²."
    if info.construction_year is not None and not (
        MIN_CONSTRUCTION_YEAR <= info.construction_year <= current_year
    ):
        errors["construction_year"] = (
            f"Construction year must be between {MIN_CONSTRUCTION_YEAR} and {current_year}."
        )
    return errors
