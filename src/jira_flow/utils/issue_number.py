"""대상 이슈 키 결정 유틸리티.

``--number`` 옵션 또는 현재 git 브랜치명에서 이슈 키를 찾습니다.
브랜치명 컨벤션: ``{prefix}/{ISSUE_KEY}-{summary-slug}``
"""

from __future__ import annotations

import logging
import re
import subprocess

logger = logging.getLogger(__name__)

ISSUE_KEY_PATTERN = re.compile(r"\b([A-Z][A-Z0-9_]+-\d+)\b")


def normalize_issue_key(number: str, default_project: str = "") -> str:
    """숫자만 주어지면 기본 프로젝트 키를 붙입니다.

    Examples:
        >>> normalize_issue_key("123", "LPS")
        'LPS-123'
        >>> normalize_issue_key("lps-7")
        'LPS-7'
    """
    number = number.strip()
    if number.isdigit() and default_project:
        return f"{default_project}-{number}"
    return number.upper()


def issue_key_from_branch(branch: str) -> str | None:
    """브랜치명에 포함된 첫 번째 이슈 키를 반환합니다."""
    match = ISSUE_KEY_PATTERN.search(branch)
    return match.group(1) if match else None


def current_branch(cwd: str | None = None) -> str | None:
    """현재 git 브랜치명. git 저장소가 아니면 None."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            cwd=cwd,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        logger.debug("git 실행 파일을 찾을 수 없습니다")
        return None
    if result.returncode != 0:
        logger.debug("git 브랜치 조회 실패: %s", result.stderr.strip())
        return None
    return result.stdout.strip() or None


def resolve_current_issue_number(
    number: str | None,
    default_project: str = "",
    cwd: str | None = None,
) -> str | None:
    """대상 이슈 키를 결정합니다.

    1. ``number`` 가 있으면 정규화해서 사용
    2. 없으면 현재 git 브랜치명에서 추출
    """
    if number:
        return normalize_issue_key(number, default_project)

    branch = current_branch(cwd)
    if not branch:
        return None
    key = issue_key_from_branch(branch)
    if key:
        logger.info("브랜치 %s 에서 이슈 키 추출: %s", branch, key)
    return key
