from .app_repository import AppRepository
from .app_version_repository import AppVersionRepository
from .organization_repository import OrganizationRepository

__all__ = [
    "AppRepository",
    "AppVersionRepository",
    "OrganizationRepository",
]
