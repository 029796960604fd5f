import logging
import uuid
from typing import Any

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app import crud
from app.api.deps import AdminUser, SessionDep
from app.core.config import settings
from app.models import (
    Blog,
    BlogCategoriesResponse,
    BlogCreate,
    BlogLikeResponse,
    BlogResponse,
    BlogsResponse,
    BlogStatsResponse,
    BlogUpdate,
    Message,
    Pagination,
)

router = APIRouter(prefix="/blog", tags=["blog"])
logger = logging.getLogger(__name__)

SLUG_TAKEN = "Blog with this slug already exists"


def _get_blog_or_404(session: Session, id: uuid.UUID) -> Blog:
    blog = session.get(Blog, id)
    if not blog:
        raise HTTPException(status_code=404, detail="Blog not found")
    return blog


def _available_slug(
    session: Session, source: str, *, exclude_id: uuid.UUID | None = None
) -> str:
    slug = crud.slugify(source)
    if not slug:
        raise HTTPException(status_code=400, detail="Slug cannot be empty")
    existing = crud.get_blog_by_slug(session=session, slug=slug)
    if existing and existing.id != exclude_id:
        raise HTTPException(status_code=400, detail=SLUG_TAKEN)
    return slug


@router.get("/", response_model=BlogsResponse)
def read_blogs(
    session: SessionDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    category: str | None = None,
    featured: bool | None = None,
    search: str | None = Query(default=None, max_length=200),
) -> Any:
    """
    Published posts, newest first, or ranked by relevance when searching.
    """
    blogs, total = crud.get_blogs(
        session=session,
        page=page,
        limit=limit,
        category=category,
        featured=featured,
        search=search,
    )
    return {
        "success": True,
        "blogs": blogs,
        "pagination": Pagination.build(page=page, limit=limit, total=total),
    }


@router.get("/featured", response_model=BlogsResponse)
def read_featured_blogs(session: SessionDep) -> Any:
    return {"success": True, "blogs": crud.get_featured_blogs(session=session, limit=3)}


@router.get("/latest", response_model=BlogResponse)
def read_latest_blog(session: SessionDep) -> Any:
    blog = crud.get_latest_blog(session=session)
    if not blog:
        raise HTTPException(status_code=404, detail="No blogs found")
    return {"success": True, "blog": blog}


@router.get("/stats", response_model=BlogStatsResponse)
def read_blog_stats(session: SessionDep) -> Any:
    stats = crud.get_blog_stats(session=session)
    return {
        "success": True,
        "stats": [{"published": published, "count": count} for published, count in stats],
        "total_count": sum(count for _, count in stats),
        "published_count": sum(count for published, count in stats if published),
    }


@router.get("/categories", response_model=BlogCategoriesResponse)
def read_blog_categories(session: SessionDep) -> Any:
    categories = crud.get_blog_categories(session=session)
    return {
        "success": True,
        "categories": [
            {"category": category, "count": count} for category, count in categories
        ],
    }


@router.get("/admin/all", response_model=BlogsResponse)
def read_all_blogs(
    session: SessionDep,
    _admin: AdminUser,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
) -> Any:
    """
    Every post including drafts, newest created first.
    """
    blogs, total = crud.get_blogs(
        session=session, page=page, limit=limit, published_only=False
    )
    return {
        "success": True,
        "blogs": blogs,
        "pagination": Pagination.build(page=page, limit=limit, total=total),
    }


@router.get("/slug/{slug}", response_model=BlogResponse)
def read_blog_by_slug(slug: str, session: SessionDep) -> Any:
    blog = crud.get_blog_by_slug(session=session, slug=slug, published_only=True)
    if not blog:
        raise HTTPException(status_code=404, detail="Blog not found")
    blog = crud.increment_blog_views(session=session, db_blog=blog)
    return {"success": True, "blog": blog}


@router.get("/{id}", response_model=BlogResponse)
def read_blog(id: uuid.UUID, session: SessionDep, _admin: AdminUser) -> Any:
    return {"success": True, "blog": _get_blog_or_404(session, id)}


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=BlogResponse)
def create_blog(*, session: SessionDep, _admin: AdminUser, blog_in: BlogCreate) -> Any:
    slug = _available_slug(session, blog_in.slug or blog_in.title)
    try:
        blog = crud.create_blog(
            session=session,
            blog_in=blog_in,
            slug=slug,
            default_author=settings.SITE_OWNER_NAME,
        )
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=400, detail=SLUG_TAKEN)
    logger.info("Blog %s created with slug %s", blog.id, blog.slug)
    return {"success": True, "message": "Blog created successfully", "blog": blog}


@router.put("/{id}", response_model=BlogResponse)
def update_blog(
    *, id: uuid.UUID, session: SessionDep, _admin: AdminUser, blog_in: BlogUpdate
) -> Any:
    blog = _get_blog_or_404(session, id)
    slug = None
    if blog_in.slug is not None:
        slug = _available_slug(session, blog_in.slug, exclude_id=blog.id)
    try:
        blog = crud.update_blog(session=session, db_blog=blog, blog_in=blog_in, slug=slug)
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=400, detail=SLUG_TAKEN)
    return {"success": True, "message": "Blog updated successfully", "blog": blog}


@router.delete("/{id}", response_model=Message)
def delete_blog(id: uuid.UUID, session: SessionDep, _admin: AdminUser) -> Message:
    blog = _get_blog_or_404(session, id)
    session.delete(blog)
    session.commit()
    return Message(message="Blog deleted successfully")


@router.post("/{id}/like", response_model=BlogLikeResponse)
def like_blog(id: uuid.UUID, session: SessionDep) -> Any:
    blog = session.get(Blog, id)
    if not blog or not blog.published:
        raise HTTPException(status_code=404, detail="Blog not found")
    blog = crud.like_blog(session=session, db_blog=blog)
    return {"success": True, "message": "Blog liked successfully", "likes": blog.likes}
