"""워크플로우 Facade.

JiraService와 TransitionService를 조합하여 명령 단위 워크플로우를 제공합니다.
각 워크플로우는 순서대로 실행되며, 첫 번째 실패에서 즉시 중단됩니다.

주요 워크플로우:
    1. new        : 이슈 타입 → 프로젝트 → 컴포넌트 → 우선순위 → 버전 → 생성
    2. update     : 같은 해석 체인 (모두 선택) → 빈 값 제거 → 수정
    3. comment    : 이슈 조회 → 댓글 렌더링 → 추가
    4. transition : 전환 목록 → 매칭 → 필드 해석 → 제출
    5. assign     : 담당자 지정 (상태 코드 해석)
    6. browser    : 브라우저에서 이슈 열기
"""

from __future__ import annotations

import logging
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass, replace

from jira_flow.config import AppConfig
from jira_flow.exceptions import (
    AssignError,
    NotFoundError,
    ResourceNotFoundError,
    ValidationError,
)
from jira_flow.models.issue import IssueOptions, Project
from jira_flow.services.jira_service import JiraService
from jira_flow.services.transition_service import TransitionService
from jira_flow.utils.name_resolver import (
    COMPONENT_HINT,
    ISSUE_TYPE_HINT,
    PRIORITY_HINT,
    PROJECT_HINT,
    USER_HINT,
    VERSION_HINT,
    find_first,
    resolve_by_name,
)
from jira_flow.utils.payload import (
    build_create_payload,
    build_update_payload,
    expand_comment,
    prune_empty,
    render_payload,
)
from jira_flow.utils.prompt import ConsolePrompter
from jira_flow.utils.templating import TemplateRenderer

logger = logging.getLogger(__name__)

ASSIGN_MESSAGES = {
    400: "The user representation is malformed.",
    401: "You do not have permission to assign this issue.",
    404: "Either the issue or the user does not exist.",
}

MISSING_NUMBER_MESSAGE = 'No issue number found, try --number "LPS-123".'


@dataclass(frozen=True)
class WorkflowResult:
    """워크플로우 실행 결과."""

    issue_key: str
    message: str = ""
    url: str = ""
    payload: dict | None = None


class WorkflowFacade:
    """명령별 해석 체인을 순서대로 실행하는 Facade 클래스."""

    def __init__(
        self,
        config: AppConfig,
        jira: JiraService | None = None,
        prompter: ConsolePrompter | None = None,
        opener: Callable[[str], bool] = webbrowser.open,
    ) -> None:
        self._config = config
        self._jira = jira or JiraService(config.jira)
        self._prompter = prompter or ConsolePrompter()
        self._opener = opener

    @property
    def user(self) -> str:
        return self._config.jira.user

    # ─── 옵션 기본값 ─────────────────────────────────────────────────────

    def apply_defaults(self, options: IssueOptions) -> IssueOptions:
        """설정 기본값을 채운 새 옵션을 반환합니다.

        프로젝트가 먼저 결정되어야 프로젝트별 컴포넌트/버전 기본값을 고를 수
        있습니다. 별칭은 기본값을 채운 뒤에 풀어 줍니다.
        """
        defaults = self._config.defaults
        project = options.project or defaults.project
        assignee = options.assignee or defaults.assignee

        resolved = replace(
            options,
            project=project,
            issue_type=options.issue_type or defaults.issue_type,
            component=options.component or defaults.component_for(project),
            version=options.version or defaults.version_for(project),
            assignee=assignee or self.user,
            assignee_explicit=bool(assignee),
            reporter=options.reporter or self.user,
        )
        return self._expand_aliases(resolved)

    def _expand_aliases(self, options: IssueOptions) -> IssueOptions:
        return replace(
            options,
            assignee=self._config.resolve_alias(options.assignee),
            reporter=self._config.resolve_alias(options.reporter),
        )

    def resolve_user(self, name: str) -> str:
        """이메일 형태의 사용자 지정을 Jira 사용자명으로 바꿉니다.

        이메일이 아니면 원격 조회 없이 그대로 반환합니다.

        Raises:
            NotFoundError: 일치하는 사용자가 없을 때.
        """
        if not name or "@" not in name:
            return name
        user = find_first(self._jira.search_users(name), "emailAddress", name)
        if user is None:
            raise NotFoundError(USER_HINT)
        return user["name"]

    def _resolve_people(self, options: IssueOptions) -> IssueOptions:
        return replace(
            options,
            assignee=self.resolve_user(options.assignee),
            reporter=self.resolve_user(options.reporter),
        )

    def _renderer(self, options: IssueOptions) -> TemplateRenderer:
        return TemplateRenderer({
            "user": self.user,
            "signature": self._config.signature,
            "options": options.to_dict(),
            "config": {
                "defaults": self._config.defaults,
                "aliases": self._config.aliases,
            },
        })

    def _resolve_project(self, project_key: str) -> Project:
        if not project_key:
            raise NotFoundError(PROJECT_HINT)
        try:
            return self._jira.get_project(project_key)
        except ResourceNotFoundError as e:
            raise NotFoundError(PROJECT_HINT) from e

    @staticmethod
    def _require_number(options: IssueOptions) -> str:
        if not options.number:
            raise ValidationError(MISSING_NUMBER_MESSAGE)
        return options.number

    def _result(self, issue_key: str, message: str, payload: dict | None = None) -> WorkflowResult:
        return WorkflowResult(
            issue_key=issue_key,
            message=message,
            url=self._jira.browse_url(issue_key),
            payload=payload,
        )

    # ─── 워크플로우 1: 이슈 생성 ─────────────────────────────────────────

    def create_issue(self, options: IssueOptions) -> WorkflowResult:
        """이름 해석 체인을 거쳐 새 이슈를 생성합니다.

        1. 이슈 타입 (필수)
        2. 프로젝트 (필수)
        3. 컴포넌트 (필수)
        4. 우선순위 (선택, 미지정 시 조회하지 않음)
        5. 버전 (선택, 미지정 시 조회하지 않음)
        6. payload 조립 → 템플릿 치환 → 생성
        """
        options = self.apply_defaults(options)
        logger.info("프로젝트 %s 에 새 이슈 생성 시작", options.project)

        issue_type = resolve_by_name(
            self._jira.list_issue_types, options.issue_type, ISSUE_TYPE_HINT
        )
        project = self._resolve_project(options.project)
        component = resolve_by_name(
            lambda: self._jira.list_components(project.key),
            options.component,
            COMPONENT_HINT,
        )
        priority = resolve_by_name(
            self._jira.list_priorities, options.priority, PRIORITY_HINT, required=False
        )
        version = resolve_by_name(
            lambda: self._jira.get_versions(project.key),
            options.version,
            VERSION_HINT,
            required=False,
        )
        options = self._resolve_people(options)

        payload = build_create_payload(
            options,
            acting_user=self.user,
            issue_type=issue_type,
            project=project,
            component=component,
            priority=priority,
            version=version,
        )
        payload = render_payload(payload, self._renderer(options))

        data = self._jira.add_new_issue(payload)
        issue_key = data["key"]
        return self._result(issue_key, f"이슈 '{issue_key}'이(가) 생성되었습니다.", payload)

    # ─── 워크플로우 2: 이슈 수정 ─────────────────────────────────────────

    def update_issue(self, options: IssueOptions) -> WorkflowResult:
        """지정된 필드만 수정합니다.

        타입/컴포넌트/버전 기본값은 적용하지 않습니다. 적용하면 기존 값을
        덮어쓰게 됩니다. 프로젝트를 모르면 프로젝트 조회를 건너뛰고,
        컴포넌트/버전은 이슈 키의 프로젝트 접두어 기준으로 조회합니다.
        """
        issue_key = self._require_number(options)
        options = self._expand_aliases(options)
        logger.info("이슈 %s 수정 시작", issue_key)

        issue_type = resolve_by_name(
            self._jira.list_issue_types, options.issue_type, ISSUE_TYPE_HINT, required=False
        )
        scope = issue_key.split("-")[0]
        if options.project:
            scope = self._resolve_project(options.project).key
        component = resolve_by_name(
            lambda: self._jira.list_components(scope),
            options.component,
            COMPONENT_HINT,
            required=False,
        )
        priority = resolve_by_name(
            self._jira.list_priorities, options.priority, PRIORITY_HINT, required=False
        )
        version = resolve_by_name(
            lambda: self._jira.get_versions(scope),
            options.version,
            VERSION_HINT,
            required=False,
        )
        options = replace(options, assignee=self.resolve_user(options.assignee))

        payload = build_update_payload(
            options,
            issue_type=issue_type,
            component=component,
            priority=priority,
            version=version,
        )
        payload = prune_empty(render_payload(payload, self._renderer(options)))
        if not payload:
            raise ValidationError("Nothing to update, try --title or --message.")

        self._jira.update_issue(issue_key, payload)
        return self._result(issue_key, f"이슈 '{issue_key}'이(가) 수정되었습니다.", payload)

    # ─── 워크플로우 3: 댓글 ──────────────────────────────────────────────

    def add_comment(self, options: IssueOptions) -> WorkflowResult:
        """이슈를 조회한 뒤 렌더링된 댓글을 추가합니다."""
        issue_key = self._require_number(options)
        logger.info("이슈 %s 에 댓글 추가 시작", issue_key)

        issue = self._jira.find_issue(issue_key)
        body = expand_comment(
            options.comment, self._renderer(options), self._config.signature, self._config.markdown,
        )
        self._jira.add_comment(issue.id, body)
        return self._result(issue_key, f"이슈 '{issue_key}'에 댓글이 추가되었습니다.")

    # ─── 워크플로우 4: 상태 전환 ─────────────────────────────────────────

    def _transitions(self, options: IssueOptions) -> TransitionService:
        return TransitionService(
            self._jira, self._config, self._prompter, self._renderer(options)
        )

    def transition_issue(self, options: IssueOptions, name: str) -> WorkflowResult:
        """이름으로 지정한 전환을 수행합니다."""
        issue_key = self._require_number(options)
        options = self._resolve_people(self.apply_defaults(options))
        logger.info("이슈 %s 를 %s 로 전환 시작", issue_key, name)

        payload = self._transitions(options).transition(issue_key, name, options)
        return self._result(
            issue_key, f"이슈 '{issue_key}'에 '{name}' 전환을 적용했습니다.", payload
        )

    def transition_with_menu(self, options: IssueOptions) -> WorkflowResult:
        """가능한 작업 목록을 보여 주고 선택한 작업을 수행합니다.

        선택지: 취소, 나에게 할당, 기본 담당자에게 할당, 브라우저 열기, 각 전환.
        """
        issue_key = self._require_number(options)
        options = self._resolve_people(self.apply_defaults(options))
        logger.info("이슈 %s 의 가능한 전환 목록 조회", issue_key)

        service = self._transitions(options)
        transitions = service.list_transitions(issue_key)

        actions: list[tuple[str, tuple]] = [
            ("Cancel", ("cancel",)),
            ("Assign to me", ("assign", self.user)),
        ]
        configured = self._config.resolve_alias(self._config.defaults.assignee)
        if configured and configured != self.user:
            actions.append((f"Assign to {configured}", ("assign", configured)))
        actions.append(("Open in browser", ("browser",)))
        actions.extend((t.name, ("transition", t)) for t in transitions)

        index = self._prompter.choose(
            f"{issue_key} 에서 수행할 작업을 선택하세요", [label for label, _ in actions]
        )

        match actions[index][1]:
            case ("cancel",):
                return self._result(issue_key, "아무 작업도 하지 않았습니다.")
            case ("assign", username):
                payload = {"fields": {"assignee": {"name": self.resolve_user(username)}}}
                self._jira.update_issue(issue_key, payload)
                return self._result(
                    issue_key, f"이슈 '{issue_key}'을(를) {username} 에게 할당했습니다.", payload
                )
            case ("browser",):
                return self.open_in_browser(options)
            case ("transition", transition):
                logger.info("이슈 %s 를 %s 로 전환 시작", issue_key, transition.name)
                payload = service.apply(issue_key, transition, options)
                return self._result(
                    issue_key,
                    f"이슈 '{issue_key}'에 '{transition.name}' 전환을 적용했습니다.",
                    payload,
                )

    # ─── 워크플로우 5: 담당자 지정 ───────────────────────────────────────

    def assign_issue(self, options: IssueOptions) -> WorkflowResult:
        """담당자를 지정합니다. 응답 상태 코드로 결과를 판단합니다.

        Raises:
            AssignError: 204가 아닌 응답을 받았을 때.
        """
        issue_key = self._require_number(options)
        options = self._resolve_people(self.apply_defaults(options))
        logger.info("이슈 %s 담당자를 %s 로 지정 시작", issue_key, options.assignee)

        status = self._jira.assign_issue(issue_key, options.assignee)
        if status != 204:
            message = ASSIGN_MESSAGES.get(
                status, f"Unable to assign the issue (HTTP {status})."
            )
            raise AssignError(message, status_code=status)
        return self._result(
            issue_key, f"이슈 '{issue_key}'을(를) {options.assignee} 에게 할당했습니다."
        )

    # ─── 워크플로우 6: 브라우저 ──────────────────────────────────────────

    def open_in_browser(self, options: IssueOptions) -> WorkflowResult:
        """이슈 페이지를 브라우저로 엽니다. Jira API는 호출하지 않습니다."""
        issue_key = self._require_number(options)
        url = self._jira.browse_url(issue_key)
        self._opener(url)
        return WorkflowResult(issue_key=issue_key, message="브라우저에서 이슈를 열었습니다.", url=url)
