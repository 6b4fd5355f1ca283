# aiplacement/state_manager.py
from typing import List, Optional
from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from aiplacement.models.course import Course, CourseSection, CourseActivity, CourseFile, Grade
from aiplacement.models.log import ChatLog, FileCache
from aiplacement.utils.logger import logger


# --- Course content ---

async def get_course(session: AsyncSession, course_id: int) -> Optional[Course]:
    result = await session.execute(select(Course).filter_by(id=course_id))
    return result.scalars().first()


async def replace_course(session: AsyncSession, course_id: int, fullname: str,
                         sections: List[dict], activities: List[dict], grades: List[dict]) -> Course:
    """
    Creates the course or replaces its sections, activities and grades.
    Files are kept; they are managed through uploads.
    The calling function is responsible for committing the transaction.
    """
    course = await get_course(session, course_id)
    if course:
        course.fullname = fullname
        for model in (CourseSection, CourseActivity, Grade):
            await session.execute(delete(model).where(model.course_id == course_id))
    else:
        logger.info(f"Adding new course {course_id} '{fullname}' to session.")
        course = Course(id=course_id, fullname=fullname)
        session.add(course)
        await session.flush()

    session.add_all(CourseSection(course_id=course_id, **data) for data in sections)
    session.add_all(CourseActivity(course_id=course_id, **data) for data in activities)
    session.add_all(Grade(course_id=course_id, **data) for data in grades)
    return course


async def add_course_file(session: AsyncSession, course_id: int, filename: str,
                          contenthash: str, content: bytes) -> CourseFile:
    course_file = CourseFile(course_id=course_id, filename=filename, contenthash=contenthash,
                             filesize=len(content), content=content)
    session.add(course_file)
    await session.flush()
    return course_file


async def get_sections(session: AsyncSession, course_id: int) -> List[CourseSection]:
    result = await session.execute(
        select(CourseSection).filter_by(course_id=course_id).order_by(CourseSection.section)
    )
    return list(result.scalars().all())


async def get_visible_activities(session: AsyncSession, course_id: int) -> List[CourseActivity]:
    result = await session.execute(
        select(CourseActivity)
        .filter_by(course_id=course_id, visible=True)
        .order_by(CourseActivity.section, CourseActivity.id)
    )
    return list(result.scalars().all())


async def get_course_files(session: AsyncSession, course_id: int) -> List[CourseFile]:
    result = await session.execute(
        select(CourseFile)
        .filter(CourseFile.course_id == course_id, CourseFile.filesize > 0)
        .order_by(CourseFile.created_at.desc(), CourseFile.id.desc())
    )
    return list(result.scalars().all())


async def get_user_grades(session: AsyncSession, course_id: int, user_id: int) -> List[Grade]:
    result = await session.execute(
        select(Grade)
        .filter(Grade.course_id == course_id, Grade.user_id == user_id, Grade.finalgrade.is_not(None))
        .order_by(Grade.updated_at.desc(), Grade.id.desc())
    )
    return list(result.scalars().all())


# --- Extracted file cache ---

async def has_file_cache(session: AsyncSession, course_id: int, contenthash: str) -> bool:
    result = await session.execute(
        select(FileCache.id).filter_by(course_id=course_id, contenthash=contenthash)
    )
    return result.scalars().first() is not None


async def add_file_cache(session: AsyncSession, course_id: int, filename: str,
                         contenthash: str, content: str) -> bool:
    """
    Inserts and commits a cache row. Returns False when another request
    inserted the same (course, contenthash) first; the existing row is kept.
    Objects loaded in the session are expired on that rollback.
    """
    session.add(FileCache(course_id=course_id, filename=filename,
                          contenthash=contenthash, content=content))
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.info(f"File cache for '{filename}' in course {course_id} already exists, keeping it.")
        return False
    return True


async def get_cached_extractions(session: AsyncSession, course_id: int, limit: int = 5) -> List[FileCache]:
    result = await session.execute(
        select(FileCache)
        .filter_by(course_id=course_id)
        .order_by(FileCache.created_at.desc(), FileCache.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


# --- Chat log ---

async def add_chat_log(session: AsyncSession, course_id: int, user_id: int, question: str,
                       answer: str, model: str, processing_time: int) -> ChatLog:
    log = ChatLog(course_id=course_id, user_id=user_id, question=question, answer=answer,
                  model=model, processing_time=processing_time)
    session.add(log)
    await session.commit()
    return log


async def get_chat_logs(session: AsyncSession, course_id: int, user_id: int, limit: int = 50) -> List[ChatLog]:
    result = await session.execute(
        select(ChatLog)
        .filter_by(course_id=course_id, user_id=user_id)
        .order_by(ChatLog.created_at.asc(), ChatLog.id.asc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def delete_chat_logs(session: AsyncSession, course_id: int, user_id: int) -> int:
    count_result = await session.execute(
        select(func.count(ChatLog.id)).filter_by(course_id=course_id, user_id=user_id)
    )
    deleted = count_result.scalar_one()
    await session.execute(delete(ChatLog).where(ChatLog.course_id == course_id, ChatLog.user_id == user_id))
    await session.commit()
    return deleted
