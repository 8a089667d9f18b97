"""Course API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List

from api.dependencies import get_current_user_id, get_db
from api.errors import to_http_error
from api.schemas import CourseSummaryResponse, CreateCourseRequest
from database.exceptions import DuplicateError
from models import Course

router = APIRouter()


def _summarize_course(c: Course) -> CourseSummaryResponse:
    return CourseSummaryResponse(
        id=c.id,
        name=c.name,
        location=c.location,
        tees=sorted(c.course_rating),
    )


@router.get("", response_model=List[CourseSummaryResponse])
async def list_courses(db=Depends(get_db)):
    return [_summarize_course(c) for c in await db.courses.list_courses()]


@router.get("/search", response_model=List[CourseSummaryResponse])
async def search_courses(
    q: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=50),
    db=Depends(get_db),
):
    """Courses whose name or location contains ``q``."""
    return [_summarize_course(c) for c in await db.courses.search_courses(q, limit=limit)]


@router.post("", response_model=Course, status_code=201)
async def create_course(
    body: CreateCourseRequest,
    _: str = Depends(get_current_user_id),
    db=Depends(get_db),
):
    try:
        course = Course(**body.model_dump())
        return await db.courses.create_course(course)
    except DuplicateError as e:
        raise HTTPException(409, str(e))
    except ValueError as e:
        raise to_http_error(e)


@router.get("/{course_id}", response_model=Course)
async def get_course(course_id: str, db=Depends(get_db)):
    try:
        course = await db.courses.get_course(course_id)
    except ValueError as e:
        raise to_http_error(e)
    if not course:
        raise HTTPException(404, "Course not found")
    return course
