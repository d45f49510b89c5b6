"""Reading and updating the organization settings document."""

from typing import Any, Dict

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..domain.errors import RecordValidationError
from ..models.organization import Organization
from .schemas import OrganizationSettings, OrganizationSettingsUpdate


def deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with update values taking precedence.

    Nested dictionaries are merged recursively. Lists and other values are replaced.

    Example:
        base = {"a": 1, "b": {"c": 2, "d": 3}}
        update = {"b": {"c": 99}}
        result = deep_merge(base, update)
        # result = {"a": 1, "b": {"c": 99, "d": 3}}
    """
    result = base.copy()

    for key, value in update.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def get_organization_settings(organization: Organization) -> OrganizationSettings:
    """Settings document with defaults applied for missing values.

    A stored document that no longer validates falls back to defaults so a
    bad row cannot break mail processing for the tenant.
    """
    try:
        return OrganizationSettings(**(organization.settings or {}))
    except ValidationError:
        return OrganizationSettings()


def update_organization_settings(
    db: Session,
    organization: Organization,
    settings_update: OrganizationSettingsUpdate,
) -> OrganizationSettings:
    """Deep-merge a partial update into the organization's settings.

    Raises:
        RecordValidationError: If the merged document is invalid
    """
    current_dict = get_organization_settings(organization).model_dump(mode="json")
    update_dict = settings_update.model_dump(mode="json", exclude_none=True)
    merged_dict = deep_merge(current_dict, update_dict)

    try:
        validated = OrganizationSettings(**merged_dict)
    except ValidationError as e:
        raise RecordValidationError(f"Invalid settings: {e.errors()[0]['msg']}", field="settings")

    organization.settings = validated.model_dump(mode="json")
    db.flush()
    return validated
