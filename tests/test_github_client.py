"""GitHub 클라이언트 테스트"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from diff_digest.core.exceptions import GitHubAPIError
from diff_digest.infra.github.client import (
    DIFF_MEDIA_TYPE,
    _get_headers,
    _next_page,
    get_pull_diff,
    list_merged_pull_diffs,
    validate_repo_name,
)


def _diff_response(text: str) -> MagicMock:
    mock = MagicMock()
    mock.raise_for_status = MagicMock()
    mock.text = text
    return mock


class TestValidateRepoName:
    """validate_repo_name 함수 테스트"""

    @pytest.mark.parametrize(
        "owner,repo",
        [
            ("user", "my-repo"),
            ("org-name", "repo_name"),
            ("User123", "Repo.Name"),
        ],
    )
    def test_valid_names(self, owner, repo):
        """유효한 이름은 그대로 반환"""
        assert validate_repo_name(owner, repo) == (owner, repo)

    def test_strips_whitespace(self):
        """앞뒤 공백 제거"""
        assert validate_repo_name(" user ", "repo\n") == ("user", "repo")

    @pytest.mark.parametrize(
        "owner,repo",
        [
            ("user", "../etc"),
            ("us/er", "repo"),
            ("", "repo"),
            ("user", "re po"),
        ],
    )
    def test_invalid_names(self, owner, repo):
        """허용되지 않는 문자는 ValueError"""
        with pytest.raises(ValueError, match="유효하지 않은 레포지토리 이름"):
            validate_repo_name(owner, repo)


class TestGetHeaders:
    """_get_headers 함수 테스트"""

    def test_without_token(self):
        """토큰 없으면 Authorization 헤더 없음"""
        headers = _get_headers()
        assert "Authorization" not in headers
        assert headers["Accept"] == "application/vnd.github.v3+json"

    def test_with_token_and_media_type(self):
        """토큰과 미디어 타입 적용"""
        headers = _get_headers("ghp_test", DIFF_MEDIA_TYPE)
        assert headers["Authorization"] == "Bearer ghp_test"
        assert headers["Accept"] == DIFF_MEDIA_TYPE


class TestNextPage:
    """_next_page 함수 테스트"""

    def test_next_link(self, mock_github_response):
        """rel=next 링크의 page 값"""
        mock_github_response.links = {
            "next": {"url": "https://api.github.com/repos/o/r/pulls?state=closed&page=3"}
        }
        assert _next_page(mock_github_response) == 3

    def test_last_page(self, mock_github_response):
        """다음 링크가 없으면 None"""
        assert _next_page(mock_github_response) is None


class TestGetPullDiff:
    """get_pull_diff 함수 테스트"""

    @pytest.mark.asyncio
    async def test_requests_diff_media_type(self):
        """diff 미디어 타입으로 요청"""
        with patch("diff_digest.infra.github.client._client") as mock_client:
            mock_client.get = AsyncMock(return_value=_diff_response("diff --git a/x b/x"))

            result = await get_pull_diff("user", "repo", 7, token="ghp_test")

        assert result == "diff --git a/x b/x"
        url = mock_client.get.call_args.args[0]
        headers = mock_client.get.call_args.kwargs["headers"]
        assert url.endswith("/repos/user/repo/pulls/7")
        assert headers["Accept"] == DIFF_MEDIA_TYPE


class TestListMergedPullDiffs:
    """list_merged_pull_diffs 함수 테스트"""

    @pytest.mark.asyncio
    async def test_returns_only_merged_pulls(self, mock_github_response):
        """머지되지 않은 PR은 제외"""
        mock_github_response.json.return_value = [
            {
                "number": 42,
                "title": "Add x",
                "html_url": "https://github.com/user/repo/pull/42",
                "merged_at": "2024-01-01T00:00:00Z",
            },
            {"number": 43, "title": "Closed without merge", "merged_at": None},
        ]
        mock_github_response.links = {
            "next": {"url": "https://api.github.com/repos/user/repo/pulls?page=2"}
        }

        with patch("diff_digest.infra.github.client._client") as mock_client:
            mock_client.get = AsyncMock(
                side_effect=[mock_github_response, _diff_response("diff --git a/x b/x")]
            )

            result = await list_merged_pull_diffs("user", "repo", page=1, per_page=10)

        assert mock_client.get.call_count == 2
        assert [item.id for item in result.diffs] == ["42"]
        item = result.diffs[0]
        assert item.description == "Add x"
        assert item.diff == "diff --git a/x b/x"
        assert item.url == "https://github.com/user/repo/pull/42"
        assert result.next_page == 2
        assert result.current_page == 1
        assert result.per_page == 10

    @pytest.mark.asyncio
    async def test_request_params(self, mock_github_response):
        """closed 상태 PR을 요청하고 per_page 상한 적용"""
        mock_github_response.json.return_value = []

        with patch("diff_digest.infra.github.client._client") as mock_client:
            mock_client.get = AsyncMock(return_value=mock_github_response)

            result = await list_merged_pull_diffs("user", "repo", page=2, per_page=500)

        params = mock_client.get.call_args.kwargs["params"]
        assert params["state"] == "closed"
        assert params["page"] == 2
        assert params["per_page"] == 100
        assert result.diffs == []
        assert result.next_page is None

    @pytest.mark.asyncio
    async def test_http_error(self, mock_github_response, create_http_error):
        """HTTP 오류는 GitHubAPIError"""
        mock_github_response.raise_for_status.side_effect = create_http_error(404, "Not Found")

        with patch("diff_digest.infra.github.client._client") as mock_client:
            mock_client.get = AsyncMock(return_value=mock_github_response)

            with pytest.raises(GitHubAPIError) as exc_info:
                await list_merged_pull_diffs("user", "repo")

        assert exc_info.value.detail == "status=404"

    @pytest.mark.asyncio
    async def test_diff_fetch_error(self, mock_github_response, create_http_error):
        """diff 조회 실패도 GitHubAPIError"""
        mock_github_response.json.return_value = [
            {"number": 42, "title": "Add x", "merged_at": "2024-01-01T00:00:00Z"}
        ]
        failing = _diff_response("")
        failing.raise_for_status.side_effect = create_http_error(500)

        with patch("diff_digest.infra.github.client._client") as mock_client:
            mock_client.get = AsyncMock(side_effect=[mock_github_response, failing])

            with pytest.raises(GitHubAPIError):
                await list_merged_pull_diffs("user", "repo")

    @pytest.mark.asyncio
    async def test_request_error(self):
        """네트워크 오류는 GitHubAPIError"""
        with patch("diff_digest.infra.github.client._client") as mock_client:
            mock_client.get = AsyncMock(side_effect=httpx.ConnectTimeout("timeout"))

            with pytest.raises(GitHubAPIError) as exc_info:
                await list_merged_pull_diffs("user", "repo")

        assert exc_info.value.detail == "ConnectTimeout"

    @pytest.mark.asyncio
    async def test_invalid_repo_name(self):
        """잘못된 이름은 요청 없이 ValueError"""
        with patch("diff_digest.infra.github.client._client") as mock_client:
            mock_client.get = AsyncMock()

            with pytest.raises(ValueError):
                await list_merged_pull_diffs("user", "../repo")

        mock_client.get.assert_not_called()
