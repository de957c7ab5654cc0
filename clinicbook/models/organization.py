"""Organization and service model definitions.

Both tables are owned by the catalog side of the marketplace; the
scheduling core only reads them.
"""

from sqlalchemy import Column, ForeignKey, Integer, String, Time
from clinicbook.database import Base


class Organization(Base):
    """Represents a provider (clinic) with a daily opening window."""
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True)
    name = Column(String)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    open_time = Column(Time, nullable=False)
    close_time = Column(Time, nullable=False)


class Service(Base):
    """Represents a bookable service offered by an organization."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String)
