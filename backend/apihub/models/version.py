from __future__ import annotations
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, DateTime, ForeignKey, UniqueConstraint, func
from .authz import Base


class ProjectVersion(Base):
    __tablename__ = 'project_versions'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    project = relationship('Project')

    __table_args__ = (UniqueConstraint('project_id', 'name', name='uq_project_version_name'),)


class VersionAssociation(Base):
    """Binds one version to one (path, method) operation of one spec."""
    __tablename__ = 'version_associations'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    version_id: Mapped[int] = mapped_column(ForeignKey('project_versions.id', ondelete='CASCADE'), nullable=False, index=True)
    api_spec_id: Mapped[int] = mapped_column(ForeignKey('api_specs.id', ondelete='CASCADE'), nullable=False, index=True)
    endpoint_path: Mapped[str] = mapped_column(String(512), nullable=False)
    endpoint_method: Mapped[str] = mapped_column(String(16), nullable=False)

    version = relationship('ProjectVersion')
    api_spec = relationship('ApiSpec')

__all__ = ["ProjectVersion", "VersionAssociation"]
