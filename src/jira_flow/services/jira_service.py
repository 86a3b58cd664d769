"""Jira REST API 서비스.

이슈 조회/생성/수정, 메타데이터 목록 조회, 상태 전환, 담당자 지정 기능을 제공합니다.
Jira REST API v2 사용: https://docs.atlassian.com/software/jira/docs/api/REST/latest/
"""

from __future__ import annotations

import logging

import requests

from jira_flow.config import JiraConfig
from jira_flow.exceptions import (
    AuthenticationError,
    JiraApiError,
    ResourceNotFoundError,
    flatten_error_body,
)
from jira_flow.models.issue import JiraIssue, NamedEntity, Project, Transition

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


class JiraService:
    """Jira REST API를 캡슐화하는 서비스 클래스."""

    def __init__(self, config: JiraConfig) -> None:
        self._config = config
        self._session = self._build_session()

    @property
    def user(self) -> str:
        """API를 호출하는 사용자명."""
        return self._config.user

    def _build_session(self) -> requests.Session:
        """인증이 설정된 HTTP 세션을 생성합니다."""
        session = requests.Session()
        session.auth = (self._config.user, self._config.api_token)
        session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })
        return session

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        """요청만 수행하고 응답을 그대로 반환합니다."""
        url = f"{self._config.api_url}{path}"
        logger.debug("%s %s", method, url)

        try:
            return self._session.request(method, url, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.ConnectionError as e:
            raise JiraApiError(f"Jira 서버 연결 실패: {e}") from e
        except requests.Timeout as e:
            raise JiraApiError(
                f"Jira API 요청 시간 초과 ({REQUEST_TIMEOUT}초)"
            ) from e

    def _request(self, method: str, path: str, **kwargs) -> dict | list:
        """Jira API 요청을 수행하고, 에러를 처리합니다."""
        resp = self._send(method, path, **kwargs)

        if resp.status_code == 401:
            raise AuthenticationError(
                f"Jira 인증에 실패했습니다 (HTTP 401): {self._config.base_url}"
            )
        if resp.status_code == 404:
            raise ResourceNotFoundError(
                _error_message(resp) or f"리소스를 찾을 수 없습니다: {path}",
                status_code=404,
            )
        if not resp.ok:
            raise JiraApiError(
                _error_message(resp)
                or f"Jira API 오류 (HTTP {resp.status_code}): {resp.text[:200]}",
                status_code=resp.status_code,
            )

        if resp.status_code == 204 or not resp.content:
            return {}
        return resp.json()

    # ─── 이슈 ───────────────────────────────────────────────────────────

    def find_issue(self, issue_key: str) -> JiraIssue:
        """Jira 이슈를 조회합니다.

        Raises:
            ResourceNotFoundError: 이슈를 찾을 수 없을 때.
            JiraApiError: API 호출 실패 시.
        """
        data = self._request("GET", f"/issue/{issue_key}")
        logger.info("이슈 조회 완료: %s", issue_key)
        return JiraIssue.from_api_response(data)

    def add_new_issue(self, payload: dict) -> dict:
        """새 이슈를 생성하고 ``{"id", "key", "self"}`` 응답을 반환합니다."""
        data = self._request("POST", "/issue", json=payload)
        logger.info("이슈 생성 완료: %s", data.get("key"))
        return data

    def update_issue(self, issue_key: str, payload: dict) -> None:
        """이슈 필드를 수정합니다."""
        self._request("PUT", f"/issue/{issue_key}", json=payload)
        logger.info("이슈 수정 완료: %s", issue_key)

    def add_comment(self, issue_id: str, body: str) -> dict:
        """이슈에 댓글을 추가합니다."""
        data = self._request("POST", f"/issue/{issue_id}/comment", json={"body": body})
        logger.info("댓글 추가 완료: %s", issue_id)
        return data

    # ─── 메타데이터 목록 ────────────────────────────────────────────────

    def list_issue_types(self) -> list[NamedEntity]:
        data = self._request("GET", "/issuetype")
        return [NamedEntity.from_api_response(t) for t in data]

    def list_priorities(self) -> list[NamedEntity]:
        data = self._request("GET", "/priority")
        return [NamedEntity.from_api_response(p) for p in data]

    def get_project(self, project_key: str) -> Project:
        """프로젝트를 조회합니다.

        Raises:
            ResourceNotFoundError: 프로젝트가 존재하지 않을 때.
        """
        data = self._request("GET", f"/project/{project_key}")
        return Project.from_api_response(data)

    def list_components(self, project_key: str) -> list[NamedEntity]:
        data = self._request("GET", f"/project/{project_key}/components")
        return [NamedEntity.from_api_response(c) for c in data]

    def get_versions(self, project_key: str) -> list[NamedEntity]:
        data = self._request("GET", f"/project/{project_key}/versions")
        return [NamedEntity.from_api_response(v) for v in data]

    def search_users(self, query: str) -> list[dict]:
        """사용자명/이메일로 사용자를 검색합니다."""
        data = self._request("GET", "/user/search", params={"username": query})
        return list(data)

    # ─── 상태 전환 ──────────────────────────────────────────────────────

    def list_transitions(self, issue_key: str) -> list[Transition]:
        """이슈의 현재 상태에서 가능한 전환 목록을 필드 스키마와 함께 조회합니다.

        전환 목록은 이슈 상태에 따라 달라지므로 매번 새로 조회합니다.
        """
        data = self._request(
            "GET",
            f"/issue/{issue_key}/transitions",
            params={"expand": "transitions.fields"},
        )
        transitions = [
            Transition.from_api_response(t) for t in data.get("transitions", [])
        ]
        logger.info(
            "이슈 %s 전환 목록 조회: %s",
            issue_key,
            [t.name for t in transitions],
        )
        return transitions

    def transition_issue(self, issue_key: str, payload: dict) -> None:
        """전환 ID와 필드가 담긴 payload로 이슈 상태를 전환합니다."""
        self._request("POST", f"/issue/{issue_key}/transitions", json=payload)
        logger.info(
            "이슈 %s 상태 전환 완료 (transition id=%s)",
            issue_key,
            payload.get("transition", {}).get("id"),
        )

    # ─── 담당자 지정 ────────────────────────────────────────────────────

    def assign_issue(self, issue_key: str, username: str) -> int:
        """담당자를 지정하고 HTTP 상태 코드를 그대로 반환합니다.

        상태 코드 해석은 호출하는 쪽에서 합니다.
        """
        resp = self._send("PUT", f"/issue/{issue_key}/assignee", json={"name": username})
        logger.debug("담당자 지정 응답: HTTP %d", resp.status_code)
        return resp.status_code

    def browse_url(self, issue_key: str) -> str:
        """브라우저에서 열 이슈 URL."""
        return f"{self._config.base_url}/browse/{issue_key}"


def _error_message(resp: requests.Response) -> str:
    """Jira 오류 응답 본문에서 사용자용 메시지를 추출합니다."""
    try:
        body = resp.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    return flatten_error_body(body)
