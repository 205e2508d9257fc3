"""ORM models for tenants (organizations), their members and user identities."""

from sqlalchemy import BigInteger, Boolean, Column, ForeignKey, String, Uuid

from complykit.models.base import AuditableMixin, Base, enum_column
from complykit.models.enums import OrganizationRole


class Organization(AuditableMixin, Base):
    """A workspace; the unit of data isolation (tenant)."""

    __tablename__ = "organizations"

    name = Column(String(255), nullable=False)
    domain = Column(String(255), nullable=True)
    subscription_tier = Column(String(64), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    storage_used_bytes = Column(BigInteger, nullable=False, default=0)


class OrganizationMember(AuditableMixin, Base):
    __tablename__ = "organization_members"

    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    role = enum_column(OrganizationRole, nullable=False, default=OrganizationRole.MEMBER)
    is_active = Column(Boolean, nullable=False, default=True)


class User(Base):
    """
    Identity record used to resolve actor display names and emails.

    Accounts are provisioned by the identity provider; rows here are never soft-deleted.
    """

    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    first_name = Column(String(255), nullable=False, default="")
    last_name = Column(String(255), nullable=False, default="")

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
