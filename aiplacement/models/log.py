# Rows written by the placements themselves: chat turns and extracted file text
# aiplacement/models/log.py
from sqlalchemy import Column, Integer, String, DateTime, Text, UniqueConstraint, Index
from datetime import datetime

from aiplacement.models.course import Base


class ChatLog(Base):
    __tablename__ = "chat_logs"
    __table_args__ = (Index("ix_chat_logs_course_user", "course_id", "user_id"),)

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, nullable=False)
    user_id = Column(Integer, nullable=False)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    model = Column(String(50), nullable=False)
    processing_time = Column(Integer, default=0)  # milliseconds
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class FileCache(Base):
    __tablename__ = "file_cache"
    # Two requests extracting the same file race on insert; the loser hits this.
    __table_args__ = (UniqueConstraint("course_id", "contenthash", name="uq_file_cache_course_hash"),)

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, nullable=False, index=True)
    filename = Column(String(255), nullable=False)
    contenthash = Column(String(40), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
