# aiplacement/models/course.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    DateTime,
    ForeignKey,
    Text,
    Boolean,
    LargeBinary,
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime


Base = declarative_base()


class Course(Base):
    __tablename__ = "courses"
    id = Column(Integer, primary_key=True, index=True)
    fullname = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    sections = relationship("CourseSection", back_populates="course", cascade="all, delete-orphan")
    activities = relationship("CourseActivity", back_populates="course", cascade="all, delete-orphan")
    files = relationship("CourseFile", back_populates="course", cascade="all, delete-orphan")
    grades = relationship("Grade", back_populates="course", cascade="all, delete-orphan")


class CourseSection(Base):
    __tablename__ = "course_sections"
    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), index=True)
    section = Column(Integer, default=0)  # 0 is the general section
    name = Column(String(255), nullable=True)
    summary = Column(Text, nullable=True)

    course = relationship("Course", back_populates="sections")


class CourseActivity(Base):
    __tablename__ = "course_activities"
    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), index=True)
    section = Column(Integer, default=0)
    modname = Column(String(50), nullable=False)  # e.g. "assign", "quiz", "forum"
    name = Column(String(255), nullable=False)
    intro = Column(Text, nullable=True)
    visible = Column(Boolean, default=True)

    course = relationship("Course", back_populates="activities")


class CourseFile(Base):
    __tablename__ = "course_files"
    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), index=True)
    filename = Column(String(255), nullable=False)
    contenthash = Column(String(40), nullable=False)  # sha1 of content
    filesize = Column(Integer, default=0)
    content = Column(LargeBinary, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    course = relationship("Course", back_populates="files")


class Grade(Base):
    __tablename__ = "grades"
    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), index=True)
    user_id = Column(Integer, index=True)
    itemname = Column(String(255), nullable=False)
    finalgrade = Column(Float, nullable=True)
    grademax = Column(Float, default=100.0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    course = relationship("Course", back_populates="grades")
