"""심볼릭 이름 → Jira 엔티티 해석 유틸리티."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from jira_flow.exceptions import NotFoundError

logger = logging.getLogger(__name__)

# 엔티티 종류별 해석 실패 안내 메시지
ISSUE_TYPE_HINT = 'No issue type found, try --type "Bug".'
PROJECT_HINT = 'No project found, try --project "LPS".'
COMPONENT_HINT = 'No component found, try --component "JavaScript".'
PRIORITY_HINT = 'No priority found, try --priority "Major".'
VERSION_HINT = 'No version found, try --version "0.1.0".'
USER_HINT = 'No user found, try --assignee "username".'


def find_first(values: Iterable, key: str, search: str):
    """``key`` 속성(또는 dict 키)이 ``search`` 와 정확히 같은 첫 번째 요소."""
    for value in values:
        attr = value.get(key) if isinstance(value, dict) else getattr(value, key, None)
        if attr == search:
            return value
    return None


def resolve_by_name(
    list_fn: Callable[[], Iterable],
    name: str | None,
    hint: str,
    required: bool = True,
):
    """원격 목록에서 이름이 정확히 일치하는 엔티티를 찾습니다.

    대소문자를 구분하며 부분 일치는 허용하지 않습니다.

    Args:
        list_fn: 엔티티 목록을 반환하는 원격 호출.
        name: 찾을 이름.
        hint: 실패 시 사용자에게 보여줄 안내 메시지.
        required: False 이고 이름이 비어 있으면 원격 호출 없이 None 반환.

    Raises:
        NotFoundError: 이름이 없거나(필수) 목록에서 찾지 못했을 때.
    """
    if not name:
        if not required:
            return None
        raise NotFoundError(hint)

    entity = find_first(list_fn(), "name", name)
    if entity is None:
        logger.debug("이름 해석 실패: %r", name)
        raise NotFoundError(hint)

    logger.debug("이름 해석 완료: %r → %s", name, getattr(entity, "id", entity))
    return entity
