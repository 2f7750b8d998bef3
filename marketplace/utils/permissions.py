"""
Role to permission-scope mapping.
Scopes gate what a role may do; ownership of a given resource is checked separately.
"""

from typing import FrozenSet, Iterable
from marketplace.models.user import User, UserRole


READ_OWN_PROPERTIES = "read:own_properties"
WRITE_OWN_PROPERTIES = "write:own_properties"
READ_OWN_INQUIRIES = "read:own_inquiries"
WRITE_OWN_INQUIRIES = "write:own_inquiries"
READ_OWN_ANALYTICS = "read:own_analytics"
CREATE_PROPERTIES = "create:properties"
UPDATE_OWN_PROPERTIES = "update:own_properties"
DELETE_OWN_PROPERTIES = "delete:own_properties"
MANAGE_OWN_IMAGES = "manage:own_images"
VIEW_OWN_STATISTICS = "view:own_statistics"
MANAGE_OWN_PROFILE = "manage:own_profile"
LIMITED_PROPERTY_DELETION = "limited:property_deletion"

BASE_SELLER_SCOPES = frozenset({
    READ_OWN_PROPERTIES,
    WRITE_OWN_PROPERTIES,
    READ_OWN_INQUIRIES,
    WRITE_OWN_INQUIRIES,
    READ_OWN_ANALYTICS,
})

SELLER_SCOPES = BASE_SELLER_SCOPES | {
    CREATE_PROPERTIES,
    UPDATE_OWN_PROPERTIES,
    DELETE_OWN_PROPERTIES,
    MANAGE_OWN_IMAGES,
    VIEW_OWN_STATISTICS,
    MANAGE_OWN_PROFILE,
}

# Agents act for owners and cannot delete outright
AGENT_SCOPES = (SELLER_SCOPES - {DELETE_OWN_PROPERTIES}) | {LIMITED_PROPERTY_DELETION}

ALL_SCOPES = SELLER_SCOPES | AGENT_SCOPES

ROLE_SCOPES = {
    UserRole.SELLER: frozenset(SELLER_SCOPES),
    UserRole.AGENT: frozenset(AGENT_SCOPES),
    UserRole.ADMIN: frozenset(ALL_SCOPES),
    UserRole.BUYER: frozenset(),
    UserRole.DEVELOPER: frozenset(),
}

SELLER_PORTAL_ROLES = (UserRole.SELLER, UserRole.AGENT, UserRole.ADMIN)


def get_permissions(user: User) -> FrozenSet[str]:
    """Permission scopes granted to the user's role."""
    return ROLE_SCOPES.get(user.role, frozenset())


def has_permissions(user: User, required: Iterable[str]) -> bool:
    granted = get_permissions(user)
    return all(scope in granted for scope in required)
