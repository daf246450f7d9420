import asyncio
import re

import httpx

from diff_digest.core.config import settings
from diff_digest.core.exceptions import GitHubAPIError
from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.schemas import DiffItem, DiffPage

logger = get_logger(__name__)

GITHUB_API_BASE = "https://api.github.com"

NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")

JSON_MEDIA_TYPE = "application/vnd.github.v3+json"
DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"

MAX_PER_PAGE = 100

_client = httpx.AsyncClient(timeout=settings.github_timeout)
_request_semaphore = asyncio.Semaphore(settings.github_max_concurrent_requests)


def _get_headers(token: str | None = None, accept: str = JSON_MEDIA_TYPE) -> dict[str, str]:
    """GitHub API 요청 헤더 생성

    Args:
        token: GitHub 토큰
        accept: 응답 미디어 타입

    Returns:
        HTTP 헤더 딕셔너리
    """
    headers = {"Accept": accept}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


async def close_client():
    """httpx 클라이언트 종료"""
    await _client.aclose()


def validate_repo_name(owner: str, repo: str) -> tuple[str, str]:
    """owner/repo 이름 검증

    Raises:
        ValueError: 허용되지 않는 문자가 포함된 경우
    """
    owner, repo = owner.strip(), repo.strip()
    for value in (owner, repo):
        if not NAME_PATTERN.match(value):
            raise ValueError(f"유효하지 않은 레포지토리 이름: {owner}/{repo}")
    return owner, repo


def _next_page(response: httpx.Response) -> int | None:
    """Link 헤더의 rel="next"에서 다음 페이지 번호 추출"""
    next_link = response.links.get("next")
    if not next_link:
        return None
    page = httpx.URL(next_link["url"]).params.get("page")
    return int(page) if page and page.isdigit() else None


async def get_pull_diff(owner: str, repo: str, number: int, token: str | None = None) -> str:
    """PR 하나의 unified diff 조회"""
    url = f"{GITHUB_API_BASE}/repos/{owner}/{repo}/pulls/{number}"

    async with _request_semaphore:
        response = await _client.get(url, headers=_get_headers(token, DIFF_MEDIA_TYPE))
    response.raise_for_status()
    return response.text


async def list_merged_pull_diffs(
    owner: str,
    repo: str,
    page: int = 1,
    per_page: int = 10,
    token: str | None = None,
) -> DiffPage:
    """머지된 PR 목록과 각 PR의 diff 조회

    Args:
        owner: 레포지토리 소유자
        repo: 레포지토리 이름
        page: 페이지 번호 (1부터)
        per_page: 페이지당 PR 개수
        token: GitHub 토큰

    Returns:
        diff 목록 페이지. 다음 페이지가 없으면 next_page는 None

    Raises:
        GitHubAPIError: GitHub API 호출 실패 시
    """
    owner, repo = validate_repo_name(owner, repo)
    token = token or settings.github_token or None
    per_page = max(1, min(per_page, MAX_PER_PAGE))
    url = f"{GITHUB_API_BASE}/repos/{owner}/{repo}/pulls"
    params = {
        "state": "closed",
        "sort": "updated",
        "direction": "desc",
        "page": page,
        "per_page": per_page,
    }

    try:
        response = await _client.get(url, headers=_get_headers(token), params=params)
        response.raise_for_status()
        merged = [pr for pr in response.json() if pr.get("merged_at")]

        diffs = await asyncio.gather(
            *(get_pull_diff(owner, repo, pr["number"], token) for pr in merged)
        )
    except httpx.HTTPStatusError as e:
        logger.warning(
            "GitHub API 오류 repo=%s/%s status_code=%d",
            owner,
            repo,
            e.response.status_code,
        )
        raise GitHubAPIError(detail=f"status={e.response.status_code}") from e
    except httpx.RequestError as e:
        logger.warning("GitHub API 요청 실패 repo=%s/%s error=%s", owner, repo, type(e).__name__)
        raise GitHubAPIError(detail=type(e).__name__) from e

    items = [
        DiffItem(
            id=str(pr["number"]),
            description=pr.get("title") or "",
            diff=diff,
            url=pr.get("html_url") or "",
        )
        for pr, diff in zip(merged, diffs)
    ]

    logger.info(
        "머지된 PR diff 조회 완료 repo=%s/%s page=%d count=%d",
        owner,
        repo,
        page,
        len(items),
    )
    return DiffPage(
        diffs=items,
        next_page=_next_page(response),
        current_page=page,
        per_page=per_page,
    )
