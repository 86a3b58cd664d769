"""상태 전환 서비스.

전환 요청 한 번은 다음 순서로 진행됩니다.

    1. 목록 조회: 현재 이슈 상태에서 가능한 전환과 필드 스키마 조회
    2. 매칭: 요청한 전환 이름과 정확히(대소문자 구분) 일치하는 전환 선택
    3. 필드 해석: 설정값 우선, 없으면 필수 필드만 사용자에게 질문
    4. 병합: 담당자/댓글/해결 상태를 payload에 합침
    5. 제출: 실패 시 재시도 없이 오류 전달
"""

from __future__ import annotations

import logging

from jira_flow.config import PROMPT_MARKER, AppConfig
from jira_flow.exceptions import TransitionNotFoundError, ValidationError
from jira_flow.models.issue import FieldKind, IssueOptions, Transition, TransitionField
from jira_flow.services.jira_service import JiraService
from jira_flow.utils.name_resolver import find_first
from jira_flow.utils.payload import expand_comment, render_payload
from jira_flow.utils.prompt import ConsolePrompter
from jira_flow.utils.templating import TemplateRenderer

logger = logging.getLogger(__name__)


class TransitionService:
    """서버가 선언한 필드 스키마를 채워 상태 전환을 수행하는 서비스."""

    def __init__(
        self,
        jira: JiraService,
        config: AppConfig,
        prompter: ConsolePrompter,
        renderer: TemplateRenderer,
    ) -> None:
        self._jira = jira
        self._config = config
        self._prompter = prompter
        self._renderer = renderer

    # ─── 1~2. 목록 조회 및 매칭 ─────────────────────────────────────────

    def list_transitions(self, issue_key: str) -> list[Transition]:
        return self._jira.list_transitions(issue_key)

    def find_transition(self, issue_key: str, name: str) -> Transition:
        """이름이 정확히 일치하는 전환을 찾습니다.

        Raises:
            TransitionNotFoundError: 현재 상태에서 유효하지 않은 전환일 때.
        """
        transition = find_first(self.list_transitions(issue_key), "name", name)
        if transition is None:
            raise TransitionNotFoundError(
                f'"{name}" is not a valid transition, try another action.'
            )
        return transition

    # ─── 3. 필드 해석 ──────────────────────────────────────────────────

    def resolve_fields(self, transition: Transition, supplied: dict | None = None) -> dict:
        """전환 화면 필드 값을 결정합니다.

        명령 옵션으로 이미 주어진 필드(``supplied``)는 건너뜁니다. 설정된 값이
        있으면 그대로 쓰고, 값이 ``prompt`` 이거나 필드가 필수이면 사용자에게
        묻습니다. 나머지 필드는 비워 둡니다.

        Raises:
            ValidationError: 필수 필드 값이 끝내 비어 있을 때.
        """
        supplied = supplied or {}
        values: dict = {}
        for field_id, field in transition.fields.items():
            if field_id in supplied:
                continue
            configured = self._config.transition_field_value(transition.name, field.name)

            if configured is not None and configured != PROMPT_MARKER:
                value = self._configured_value(field, configured)
            elif field.required or configured == PROMPT_MARKER:
                value = self._prompt_value(transition, field)
            else:
                continue

            if value in (None, "", []):
                if field.required:
                    raise ValidationError(
                        f'"{field.name}" is required for "{transition.name}".'
                    )
                continue
            values[field_id] = value
        return values

    def _configured_value(self, field: TransitionField, configured: str):
        match field.kind:
            case FieldKind.TEXT | FieldKind.TEXT_LIST:
                return _wrap(field, configured)
            case FieldKind.SINGLE_SELECT | FieldKind.MULTI_SELECT:
                allowed = next(
                    (v for v in field.allowed_values
                     if TransitionField.label_of(v) == configured),
                    None,
                )
                value = {"id": allowed["id"]} if allowed else {"name": configured}
                return _wrap(field, value)

    def _prompt_value(self, transition: Transition, field: TransitionField):
        logger.debug("전환 %s 필드 입력 요청: %s", transition.name, field.name)
        match field.kind:
            case FieldKind.TEXT | FieldKind.TEXT_LIST:
                answer = self._prompter.ask(field.name)
                return _wrap(field, answer) if answer else answer
            case FieldKind.SINGLE_SELECT | FieldKind.MULTI_SELECT:
                labels = [TransitionField.label_of(v) for v in field.allowed_values]
                index = self._prompter.choose(field.name, labels)
                return _wrap(field, {"id": field.allowed_values[index]["id"]})

    # ─── 4. 병합 ───────────────────────────────────────────────────────

    def build_payload(
        self,
        transition: Transition,
        field_values: dict,
        options: IssueOptions,
    ) -> dict:
        """전환 요청 payload를 만듭니다."""
        fields = render_payload(dict(field_values), self._renderer)
        fields.update(option_fields(options))
        update: dict = {}

        if options.message:
            body = expand_comment(
                options.message, self._renderer, self._config.signature, self._config.markdown,
            )
            update["comment"] = [{"add": {"body": body}}]

        return {
            "transition": {"id": transition.id},
            "fields": fields,
            "update": update,
        }

    # ─── 5. 제출 ───────────────────────────────────────────────────────

    def apply(self, issue_key: str, transition: Transition, options: IssueOptions) -> dict:
        """이미 선택된 전환에 대해 필드 해석 → 병합 → 제출을 수행합니다."""
        field_values = self.resolve_fields(transition, option_fields(options))
        payload = self.build_payload(transition, field_values, options)
        self._jira.transition_issue(issue_key, payload)
        return payload

    def transition(self, issue_key: str, name: str, options: IssueOptions) -> dict:
        """이름으로 전환을 찾아 수행하고, 제출한 payload를 반환합니다."""
        transition = self.find_transition(issue_key, name)
        logger.info("이슈 %s 전환 선택: %s (id=%s)", issue_key, name, transition.id)
        return self.apply(issue_key, transition, options)


def option_fields(options: IssueOptions) -> dict:
    """명령 옵션이 직접 채우는 전환 필드 (필드 id → 값)."""
    fields: dict = {}
    if options.assignee_explicit and options.assignee:
        fields["assignee"] = {"name": options.assignee}
    if options.resolution:
        fields["resolution"] = {"name": options.resolution}
    return fields


def _wrap(field: TransitionField, value):
    """배열 필드는 한 개짜리 목록으로 감쌉니다."""
    return [value] if field.kind.is_array else value
