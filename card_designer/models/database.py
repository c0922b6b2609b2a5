"""数据库 ORM 模型."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CardTemplateRecord(Base):
    """卡牌模板表.

    名称不加唯一约束，同名模板各自独立保存。
    """

    __tablename__ = "card_templates"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    dimension_name = Column(String(50), nullable=False)
    width = Column(Float, nullable=False)
    height = Column(Float, nullable=False)
    scene_json = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<CardTemplateRecord(id={self.id}, name={self.name})>"
