from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Union
from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from insekta.database import Base

LINK_TYPES = ("single", "folder")


@dataclass(frozen=True)
class LinkConfig:
    """What a menu entry opens: one url, or a folder of named sub-links"""
    type: str = "single"
    url: str = ""
    sub_menus: List[dict] = field(default_factory=list)


@dataclass(frozen=True)
class Inherit:
    """The client sees the feature's default configuration"""


@dataclass(frozen=True)
class Custom:
    """The client sees its own configuration instead of the default"""
    config: LinkConfig


AccessMode = Union[Inherit, Custom]


class Feature(Base):
    """Admin-managed menu entry shown to its assigned clients"""
    __tablename__ = "features"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False, index=True)
    icon = Column(String, nullable=False)
    default_type = Column(String, default="single")  # 'single' or 'folder'
    default_url = Column(String, default="")
    default_sub_menus = Column(JSON, default=list)  # [{"title": ..., "url": ...}]
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assignments = relationship(
        "FeatureAssignment",
        back_populates="feature",
        cascade="all, delete-orphan",
        order_by="FeatureAssignment.id",
    )

    @property
    def default_config(self) -> LinkConfig:
        return LinkConfig(
            type=self.default_type or "single",
            url=self.default_url or "",
            sub_menus=list(self.default_sub_menus or []),
        )


class FeatureAssignment(Base):
    """One client's access to a feature; the custom columns are NULL while inheriting"""
    __tablename__ = "feature_assignments"
    __table_args__ = (
        UniqueConstraint("feature_id", "user_id", name="uq_feature_assignment_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    feature_id = Column(Integer, ForeignKey("features.id", ondelete="CASCADE"), nullable=False, index=True)
    # May point at a deleted user; readers skip such rows
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    is_custom = Column(Boolean, default=False, nullable=False)
    custom_type = Column(String, nullable=True)
    custom_url = Column(String, nullable=True)
    custom_sub_menus = Column(JSON, nullable=True)

    feature = relationship("Feature", back_populates="assignments")
    user = relationship("User", lazy="joined")

    @property
    def mode(self) -> AccessMode:
        if not self.is_custom:
            return Inherit()
        return Custom(LinkConfig(
            type=self.custom_type or "single",
            url=self.custom_url or "",
            sub_menus=list(self.custom_sub_menus or []),
        ))

    @mode.setter
    def mode(self, value: AccessMode):
        if isinstance(value, Custom):
            self.is_custom = True
            self.custom_type = value.config.type
            self.custom_url = value.config.url
            self.custom_sub_menus = list(value.config.sub_menus)
        else:
            self.is_custom = False
            self.custom_type = None
            self.custom_url = None
            self.custom_sub_menus = None
