"""Jinja2 기반 문자열 치환.

댓글, 설명, 전환 필드 값 등에서 ``{{ user }}``, ``{{ signature }}``,
``{{ options.title }}``, ``{{ config.defaults.assignee }}`` 같은 참조를 치환합니다.
치환 실패는 예외 대신 경고 로그로 처리합니다.

Jira 위키 마크업의 고정폭 표기 ``{{code}}`` 와 겹치므로, 컨텍스트에 없는
최상위 이름은 ``{{code}}`` 형태로 그대로 남깁니다.
"""

from __future__ import annotations

import logging

from jinja2 import BaseLoader, ChainableUndefined, Environment, TemplateError
from jinja2.utils import missing

logger = logging.getLogger(__name__)

# 렌더링 중 잘못된 호출/연산이 일으키는 예외
RENDER_ERRORS = (TemplateError, TypeError, ValueError, ArithmeticError)


class LoggingUndefined(ChainableUndefined):
    """미치환 변수 접근 시 경고 로그를 출력합니다.

    최상위 이름은 ``{{name}}`` 으로, 알려진 객체의 없는 속성은 빈 문자열로
    렌더링됩니다.
    """

    def __str__(self) -> str:
        logger.warning("템플릿 미치환 변수: %s", self._undefined_name)
        if self._undefined_obj is missing and self._undefined_name:
            return f"{{{{{self._undefined_name}}}}}"
        return ""


class TemplateRenderer:
    """설정/옵션 참조를 치환하는 템플릿 렌더러."""

    def __init__(self, context: dict | None = None) -> None:
        self._context = dict(context or {})
        self._env = Environment(
            loader=BaseLoader(),
            undefined=LoggingUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )

    @property
    def context(self) -> dict:
        return dict(self._context)

    def render(self, text: str, **extra) -> str:
        """문자열을 렌더링합니다.

        알 수 없는 최상위 참조는 ``{{name}}`` 으로 남고, 문법 오류나 잘못된
        호출(``{{ signature() }}`` 등)이 있으면 원본 문자열을 그대로 반환합니다.
        """
        if not text or ("{{" not in text and "{%" not in text):
            return text
        try:
            template = self._env.from_string(text)
            return template.render(**{**self._context, **extra})
        except RENDER_ERRORS as e:
            logger.warning("템플릿 렌더링 실패, 원문 유지: %r (%s)", text, e)
            return text
