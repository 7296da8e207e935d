from crm_api.identity.models import ApiKey, Invitation, Org, OrgUser, Role, User

__all__ = [
    "User",
    "Org",
    "OrgUser",
    "Role",
    "Invitation",
    "ApiKey",
]
