from fastapi import APIRouter, Query

from diff_digest.core.config import settings
from diff_digest.core.exceptions import ValidationError
from diff_digest.domain.notes.schemas import DiffPage
from diff_digest.infra.github.client import list_merged_pull_diffs

router = APIRouter(prefix="/diffs", tags=["diffs"])


@router.get("", response_model=DiffPage)
async def list_diffs(
    owner: str = Query(min_length=1),
    repo: str = Query(min_length=1),
    page: int = Query(default=1, ge=1),
    per_page: int | None = Query(default=None, ge=1, le=100),
) -> DiffPage:
    """머지된 PR과 diff를 페이지 단위로 반환"""
    try:
        return await list_merged_pull_diffs(
            owner,
            repo,
            page=page,
            per_page=per_page or settings.diffs_default_per_page,
        )
    except ValueError as e:
        raise ValidationError(detail=str(e)) from e
