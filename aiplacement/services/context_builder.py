# Course context assembly: one bounded text blob about a course for prompt injection
# aiplacement/services/context_builder.py
from typing import Iterable, List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from aiplacement import state_manager
from aiplacement.models.enums import ContextSource
from aiplacement.services import file_extractor
from aiplacement.utils.config import settings
from aiplacement.utils.logger import logger
from aiplacement.utils.text import strip_tags

SECTIONS_HEADING = "COURSE STRUCTURE:"
ACTIVITIES_HEADING = "COURSE ACTIVITIES:"
FILES_HEADING = "COURSE FILES:"
GRADES_HEADING = "YOUR GRADES:"

ACTIVITY_INTRO_CHARS = 200
FILE_EXCERPT_CHARS = 500
CACHED_FILES_SHOWN = 5
TRUNCATION_MARKER = "..."


def format_block(heading: str, items: List[str], separator: str = "\n") -> str:
    """Heading line plus items; empty string when there is nothing to show."""
    if not items:
        return ""
    return heading + "\n" + separator.join(items)


def truncate_context(text: str, max_length: int) -> str:
    """Raw character cut, no attempt to end on a word or sentence."""
    if len(text) > max_length:
        return text[:max_length] + TRUNCATION_MARKER
    return text


def format_grade_value(value: float) -> str:
    return f"{value:g}"


async def _sections_block(session: AsyncSession, course_id: int) -> str:
    items = []
    for section in await state_manager.get_sections(session, course_id):
        if section.section == 0:
            continue  # general section
        text = f"Section {section.section}"
        if section.name:
            text += f": {section.name}"
        summary = strip_tags(section.summary)
        if summary:
            text += f" - {summary}"
        items.append(text)
    return format_block(SECTIONS_HEADING, items)


async def _activities_block(session: AsyncSession, course_id: int) -> str:
    items = []
    for activity in await state_manager.get_visible_activities(session, course_id):
        text = f"- {activity.modname}: {activity.name}"
        intro = strip_tags(activity.intro)
        if intro:
            text += f" - {intro[:ACTIVITY_INTRO_CHARS]}..."
        items.append(text)
    return format_block(ACTIVITIES_HEADING, items)


async def cache_course_files(session: AsyncSession, course_id: int) -> int:
    """
    Extracts text from course files that have no cache row for their content
    hash yet. Returns the number of rows inserted by this call.
    """
    files = await state_manager.get_course_files(session, course_id)
    # Snapshot plain values: a rollback on a duplicate insert expires ORM objects.
    pending = [(f.filename, f.contenthash, f.content) for f in files]
    inserted = 0
    for filename, contenthash, content in pending:
        if not file_extractor.is_supported(filename):
            continue
        if await state_manager.has_file_cache(session, course_id, contenthash):
            continue
        try:
            text = await run_in_threadpool(file_extractor.extract_from_bytes, content, filename)
        except Exception as e:
            logger.warning(f"Error parsing file {filename} in course {course_id}: {e}")
            continue
        if not text:
            continue
        text = text[:settings.max_cached_extract_length]
        if await state_manager.add_file_cache(session, course_id, filename, contenthash, text):
            inserted += 1
    return inserted


async def _files_block(session: AsyncSession, course_id: int) -> str:
    await cache_course_files(session, course_id)
    items = [f.filename for f in await state_manager.get_course_files(session, course_id)]
    for extracted in await state_manager.get_cached_extractions(session, course_id, CACHED_FILES_SHOWN):
        items.append(f"{extracted.filename}:\n{extracted.content[:FILE_EXCERPT_CHARS]}...")
    return format_block(FILES_HEADING, items, separator="\n\n")


async def _grades_block(session: AsyncSession, course_id: int, user_id: int) -> str:
    items = []
    for grade in await state_manager.get_user_grades(session, course_id, user_id):
        text = f"- {grade.itemname}: {format_grade_value(grade.finalgrade)}/{format_grade_value(grade.grademax)}"
        if grade.grademax:
            text += f" ({round(grade.finalgrade / grade.grademax * 100)}%)"
        items.append(text)
    return format_block(GRADES_HEADING, items)


def resolve_sources(sources: Optional[Iterable[str]]) -> set:
    names = settings.context_sources if sources is None else sources
    resolved = set()
    for name in names:
        try:
            resolved.add(ContextSource(name))
        except ValueError:
            logger.warning(f"Ignoring unknown context source '{name}'.")
    return resolved


async def build_course_context(session: AsyncSession, course_id: int, user_id: int = 0,
                               sources: Optional[Iterable[str]] = None,
                               max_length: Optional[int] = None) -> str:
    """
    Concatenates one labeled block per enabled source, in the fixed order
    sections, activities, files, grades, and cuts the result to the
    configured length. Grades are only included for a known user.
    """
    enabled = resolve_sources(sources)
    max_length = max_length or settings.max_context_length

    blocks = []
    if ContextSource.SECTIONS in enabled:
        blocks.append(await _sections_block(session, course_id))
    if ContextSource.ACTIVITIES in enabled:
        blocks.append(await _activities_block(session, course_id))
    if ContextSource.FILES in enabled:
        blocks.append(await _files_block(session, course_id))
    if ContextSource.GRADES in enabled and user_id > 0:
        blocks.append(await _grades_block(session, course_id, user_id))

    full_context = "\n\n".join(block for block in blocks if block)
    logger.debug(f"Assembled {len(full_context)} characters of context for course {course_id}.")
    return truncate_context(full_context, max_length)
