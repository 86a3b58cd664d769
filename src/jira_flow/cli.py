"""jira-flow CLI 진입점.

사용법:
    jira-flow --new -p LPS -t "이슈 제목" -C JavaScript    # 이슈 생성
    jira-flow -n LPS-123 --comment "확인했습니다"           # 댓글 추가
    jira-flow -n LPS-123 --transition "Start Progress"     # 상태 전환
    jira-flow -n LPS-123 --transition                      # 가능한 작업 목록에서 선택
    jira-flow -n LPS-123 --update -P Major                 # 이슈 수정
    jira-flow -n LPS-123 --assign -A jdoe                  # 담당자 지정
    jira-flow -n LPS-123 --browser                         # 브라우저에서 열기

한 번의 실행에서 여러 작업을 지정하면 new → comment → update → transition →
assign → browser 순서로 실행됩니다. 한 작업이 실패해도 나머지 작업은 계속됩니다.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from collections.abc import Callable
from dataclasses import replace

from jira_flow.config import AppConfig, config_path, load_config, save_credentials
from jira_flow.exceptions import AuthenticationError, ConfigError, JiraFlowError
from jira_flow.facades.workflow_facade import WorkflowFacade, WorkflowResult
from jira_flow.models.issue import IssueOptions
from jira_flow.utils.issue_number import resolve_current_issue_number

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    """로깅을 설정합니다."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _print_result(result: WorkflowResult) -> None:
    """워크플로우 결과를 출력합니다."""
    print()
    print("========================================")
    print(f"  ✅ {result.message}")
    print("========================================")
    print(f"  이슈 키  : {result.issue_key}")
    if result.url:
        print(f"  URL      : {result.url}")
    print("========================================")


# ─── CLI 파서 ────────────────────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    """CLI 인자 파서를 구성합니다."""
    parser = argparse.ArgumentParser(
        prog="jira-flow",
        description="심볼릭 이름으로 Jira 이슈를 생성/수정/전환하는 도구",
    )
    parser.add_argument("--verbose", action="store_true", help="상세 로그 출력")

    actions = parser.add_argument_group("작업")
    actions.add_argument("-N", "--new", action="store_true", help="새 이슈 생성")
    actions.add_argument(
        "-c", "--comment", default=None,
        help="이슈에 댓글 추가 (정의되지 않은 {{name}} 은 Jira 고정폭 표기로 그대로 남음)",
    )
    actions.add_argument("-U", "--update", action="store_true", help="이슈 필드 수정")
    actions.add_argument(
        "--transition",
        nargs="?",
        const=True,
        default=None,
        help="상태 전환 이름 (값 없이 지정하면 작업 목록에서 선택)",
    )
    actions.add_argument("-a", "--assign", action="store_true", help="담당자 지정")
    actions.add_argument("-B", "--browser", action="store_true", help="브라우저에서 이슈 열기")

    fields = parser.add_argument_group("이슈 옵션")
    fields.add_argument(
        "-n", "--number", nargs="*", default=None,
        help="이슈 키 또는 번호 (생략 시 현재 git 브랜치명에서 추출)",
    )
    fields.add_argument("-A", "--assignee", default="", help="담당자 (별칭 또는 이메일 가능)")
    fields.add_argument("-C", "--component", default="", help="컴포넌트 이름")
    fields.add_argument("-m", "--message", default="", help="설명 또는 전환 댓글")
    fields.add_argument("-p", "--project", default="", help="프로젝트 키")
    fields.add_argument("-P", "--priority", default="", help="우선순위 이름")
    fields.add_argument("-R", "--reporter", default="", help="보고자")
    fields.add_argument("--resolution", default="", help="전환 시 해결 상태")
    fields.add_argument("-t", "--title", default="", help="이슈 제목")
    fields.add_argument("-T", "--type", default="", help="이슈 타입 이름")
    fields.add_argument("-v", "--version", default="", help="버전 이름")

    return parser


def _options_from_args(args: argparse.Namespace) -> IssueOptions:
    return IssueOptions(
        assignee=args.assignee,
        reporter=args.reporter,
        project=args.project,
        issue_type=args.type,
        component=args.component,
        priority=args.priority,
        version=args.version,
        title=args.title,
        message=args.message,
        comment=args.comment or "",
        resolution=args.resolution,
    )


def _queued_actions(
    facade: WorkflowFacade, args: argparse.Namespace,
) -> list[tuple[str, Callable[[IssueOptions], WorkflowResult]]]:
    """실행할 작업을 정해진 순서로 나열합니다."""
    queue = []
    if args.comment:
        queue.append(("comment", facade.add_comment))
    if args.update:
        queue.append(("update", facade.update_issue))
    if args.transition is True:
        queue.append(("transition", facade.transition_with_menu))
    elif args.transition:
        name = args.transition
        queue.append(("transition", lambda options: facade.transition_issue(options, name)))
    if args.assign:
        queue.append(("assign", facade.assign_issue))
    if args.browser:
        queue.append(("browser", facade.open_in_browser))
    return queue


def _run_action(name: str, action: Callable[[], WorkflowResult]) -> WorkflowResult | None:
    """작업 하나를 실행합니다. 실패하면 오류를 출력하고 None을 반환합니다.

    인증 정보가 거부되면 나머지 작업도 실패하므로 예외를 그대로 전달합니다.
    """
    try:
        result = action()
    except AuthenticationError:
        raise
    except JiraFlowError as e:
        logger.debug("%s 작업 실패", name, exc_info=True)
        print(f"\n❌ {e}", file=sys.stderr)
        return None
    _print_result(result)
    return result


def run(config: AppConfig, args: argparse.Namespace, facade: WorkflowFacade | None = None) -> int:
    """파싱된 인자로 작업을 실행하고 종료 코드를 반환합니다."""
    facade = facade or WorkflowFacade(config)
    options = _options_from_args(args)
    queue = _queued_actions(facade, args)
    failed = False

    if args.new:
        created = _run_action("new", lambda: facade.create_issue(options))
        if created is None:
            return 1
        targets: list[str | None] = [created.issue_key]
    else:
        numbers = args.number or [None]
        targets = [
            resolve_current_issue_number(number, config.defaults.project)
            for number in numbers
        ]

    for issue_key in targets:
        target_options = replace(options, number=issue_key or "")
        for name, action in queue:
            result = _run_action(name, lambda: action(target_options))
            failed = failed or result is None

    return 1 if failed else 0


def _interactive_setup() -> AppConfig:
    """인증 정보를 입력받아 설정 파일에 저장하고 다시 로드합니다."""
    path = config_path()
    print(f"\n🔧 Jira 인증 정보를 설정합니다 ({path})")
    base_url = input("  Jira URL (예: https://jira.example.com): ").strip()
    user = input("  사용자명: ").strip()
    api_token = getpass.getpass("  API 토큰 또는 비밀번호: ").strip()
    save_credentials(base_url, user, api_token, path)
    return load_config(path)


def _load_or_setup() -> AppConfig:
    try:
        return load_config()
    except ConfigError as e:
        print(f"\n⚠️  {e}", file=sys.stderr)
        if not sys.stdin.isatty():
            raise
        return _interactive_setup()


def _run_or_setup(config: AppConfig, args: argparse.Namespace) -> int:
    """인증이 거부되면 (터미널일 때) 인증 정보를 다시 입력받아 한 번 더 실행합니다."""
    try:
        return run(config, args)
    except AuthenticationError as e:
        print(f"\n⚠️  {e}", file=sys.stderr)
        if not sys.stdin.isatty():
            raise
        return run(_interactive_setup(), args)


# ─── 메인 ────────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> None:
    """CLI 메인 함수."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not (args.new or args.comment or args.update or args.transition
            or args.assign or args.browser):
        parser.error("작업을 하나 이상 지정하세요 (--new, --comment, --update, "
                     "--transition, --assign, --browser)")
    _setup_logging(args.verbose)

    try:
        config = _load_or_setup()
        sys.exit(_run_or_setup(config, args))
    except (ConfigError, EOFError) as e:
        print(f"\n❌ {str(e) or '설정이 취소되었습니다.'}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n👋 중단되었습니다.")
        sys.exit(130)


if __name__ == "__main__":
    main()
