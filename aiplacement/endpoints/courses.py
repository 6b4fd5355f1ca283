# Course content used to build chat context: sections, activities, grades and files
# aiplacement/endpoints/courses.py
import hashlib
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, Field
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession

from aiplacement import state_manager
from aiplacement.services.context_builder import build_course_context
from aiplacement.utils.db import get_db
from aiplacement.utils.logger import logger

router = APIRouter(
    tags=["Courses"]
)


class SectionIn(BaseModel):
    section: int
    name: str | None = None
    summary: str | None = None


class ActivityIn(BaseModel):
    section: int = 0
    modname: str
    name: str
    intro: str | None = None
    visible: bool = True


class GradeIn(BaseModel):
    user_id: int
    itemname: str
    finalgrade: float | None = None
    grademax: float = 100.0


class CourseIn(BaseModel):
    id: int
    fullname: str
    sections: List[SectionIn] = Field(default_factory=list)
    activities: List[ActivityIn] = Field(default_factory=list)
    grades: List[GradeIn] = Field(default_factory=list)


class CourseOut(BaseModel):
    id: int
    fullname: str
    sections: int
    activities: int
    grades: int


class FileOut(BaseModel):
    id: int
    filename: str
    contenthash: str
    filesize: int


class ContextOut(BaseModel):
    course_id: int
    context: str
    length: int


@router.post("/", response_model=CourseOut)
async def put_course(course_in: CourseIn, db: AsyncSession = Depends(get_db)):
    """Creates a course, or replaces the sections, activities and grades of an existing one."""
    await state_manager.replace_course(
        db,
        course_id=course_in.id,
        fullname=course_in.fullname,
        sections=[s.model_dump() for s in course_in.sections],
        activities=[a.model_dump() for a in course_in.activities],
        grades=[g.model_dump() for g in course_in.grades],
    )
    await db.commit()
    logger.info(f"Stored course {course_in.id} with {len(course_in.sections)} sections, "
                f"{len(course_in.activities)} activities and {len(course_in.grades)} grades.")
    return CourseOut(id=course_in.id, fullname=course_in.fullname, sections=len(course_in.sections),
                     activities=len(course_in.activities), grades=len(course_in.grades))


@router.post("/{course_id}/files", response_model=FileOut)
async def upload_course_file(course_id: int, file: UploadFile = File(...), db: AsyncSession = Depends(get_db)):
    if not await state_manager.get_course(db, course_id):
        raise HTTPException(status_code=404, detail="Course not found")
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    contenthash = hashlib.sha1(content).hexdigest()
    course_file = await state_manager.add_course_file(db, course_id, file.filename or "unnamed",
                                                      contenthash, content)
    await db.commit()
    return FileOut(id=course_file.id, filename=course_file.filename,
                   contenthash=course_file.contenthash, filesize=course_file.filesize)


@router.get("/{course_id}/context", response_model=ContextOut)
async def preview_context(course_id: int, user_id: int = 0, db: AsyncSession = Depends(get_db)):
    """Shows the context text the chat would send for this course and user."""
    if not await state_manager.get_course(db, course_id):
        raise HTTPException(status_code=404, detail="Course not found")
    context = await build_course_context(db, course_id, user_id)
    return ContextOut(course_id=course_id, context=context, length=len(context))
