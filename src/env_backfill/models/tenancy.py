"""Tenant-owned models: organizations, their environments, apps and app versions."""

from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from env_backfill.models.base import Base


class Organization(Base):
    """A tenant.

    Owns its environments and its apps. Exactly one environment is expected to
    carry the default flag; nothing in the schema enforces it.
    """

    __tablename__ = "organization"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String)

    app_environments: Mapped[List["AppEnvironment"]] = relationship(
        back_populates="organization",
        cascade="all, delete-orphan",
        order_by="AppEnvironment.id",
    )
    apps: Mapped[List["App"]] = relationship(
        back_populates="organization",
        cascade="all, delete-orphan",
        order_by="App.id",
    )

    def __repr__(self) -> str:
        return f"Organization(id={self.id!r}, name={self.name!r})"


class AppEnvironment(Base):
    """A deployment context (e.g. production) within an organization."""

    __tablename__ = "app_environment"
    __table_args__ = (Index("ix_app_environment_organization_id", "organization_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organization.id", ondelete="CASCADE")
    )
    name: Mapped[str] = mapped_column(String)
    is_default: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("0")
    )

    organization: Mapped[Organization] = relationship(back_populates="app_environments")

    def __repr__(self) -> str:
        return (
            f"AppEnvironment(id={self.id!r}, name={self.name!r}, "
            f"organization_id={self.organization_id!r}, is_default={self.is_default!r})"
        )


class App(Base):
    """An application owned by an organization."""

    __tablename__ = "app"
    __table_args__ = (Index("ix_app_organization_id", "organization_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organization.id", ondelete="CASCADE")
    )
    name: Mapped[str] = mapped_column(String)

    organization: Mapped[Organization] = relationship(back_populates="apps")
    app_versions: Mapped[List["AppVersion"]] = relationship(
        back_populates="app",
        cascade="all, delete-orphan",
        order_by="AppVersion.id",
    )

    def __repr__(self) -> str:
        return f"App(id={self.id!r}, name={self.name!r}, organization_id={self.organization_id!r})"


class AppVersion(Base):
    """A versioned snapshot of an app.

    current_environment_id is a lookup reference, not ownership: the version
    belongs to its app, and merely points at the environment it is current in.
    """

    __tablename__ = "app_version"
    __table_args__ = (
        Index("ix_app_version_app_id", "app_id"),
        Index("ix_app_version_current_environment_id", "current_environment_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    app_id: Mapped[int] = mapped_column(Integer, ForeignKey("app.id", ondelete="CASCADE"))
    name: Mapped[str] = mapped_column(String)
    current_environment_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("app_environment.id"), nullable=True
    )

    app: Mapped[App] = relationship(back_populates="app_versions")
    current_environment: Mapped[Optional[AppEnvironment]] = relationship()

    def __repr__(self) -> str:
        return (
            f"AppVersion(id={self.id!r}, app_id={self.app_id!r}, "
            f"current_environment_id={self.current_environment_id!r})"
        )
