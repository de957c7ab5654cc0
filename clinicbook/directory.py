"""Read-only lookups of provider data owned by the catalog collaborator."""

from dataclasses import dataclass
from datetime import datetime, time

from sqlalchemy.orm import Session

from clinicbook.core.errors import NotFound
from clinicbook.models.organization import Organization, Service


@dataclass(frozen=True)
class OrganizationInfo:
    id: int
    open_time: time
    close_time: time
    owner_id: int


@dataclass(frozen=True)
class ServiceInfo:
    id: int
    organization_id: int


class OrganizationDirectory:
    def __init__(self, db: Session) -> None:
        self._db = db

    def get_organization(self, organization_id: int) -> OrganizationInfo:
        organization = self._db.get(Organization, organization_id)
        if organization is None:
            raise NotFound(f'Organization {organization_id} not found.')
        return OrganizationInfo(
            id=organization.id,
            open_time=organization.open_time,
            close_time=organization.close_time,
            owner_id=organization.owner_id,
        )

    def get_service(self, service_id: int) -> ServiceInfo | None:
        service = self._db.get(Service, service_id)
        if service is None:
            return None
        return ServiceInfo(id=service.id, organization_id=service.organization_id)


def is_within_hours(organization: OrganizationInfo, when: datetime) -> bool:
    """True when ``when`` falls in the half-open daily window [open, close).

    A window whose close is not after its open is empty.
    """
    return organization.open_time <= when.time() < organization.close_time
