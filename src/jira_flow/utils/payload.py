"""이슈 생성/수정 요청 payload 조립 유틸리티.

payload는 Jira REST API 요청 본문과 같은 모양의 ``dict | list | scalar`` 트리입니다.
"""

from __future__ import annotations

from jira_flow.models.issue import IssueOptions, NamedEntity, Project
from jira_flow.utils.templating import TemplateRenderer

_EMPTY = (None, "")

MARKDOWN_MACRO = "{markdown}"
EMOJI_IMAGES = {":octocat:": "http://nodegh.io/images/octocat.png"}


def _is_empty(value) -> bool:
    match value:
        case dict() | list():
            return not value
        case _:
            return value in _EMPTY


def prune_empty(value):
    """값이 비어 있는(None 또는 "") 항목을 재귀적으로 제거한 새 트리를 반환합니다.

    가지치기 후 비게 된 dict/list도 함께 제거됩니다. 비어 있지 않은 하위
    구조는 그대로 유지되며, 두 번 적용해도 결과가 같습니다.

    Examples:
        >>> prune_empty({"fields": {"summary": "", "assignee": {"name": None}, "labels": ["a"]}})
        {'fields': {'labels': ['a']}}
    """
    match value:
        case dict():
            pruned = {k: prune_empty(v) for k, v in value.items()}
            return {k: v for k, v in pruned.items() if not _is_empty(v)}
        case list():
            pruned = [prune_empty(v) for v in value]
            return [v for v in pruned if not _is_empty(v)]
        case _:
            return value


def render_payload(value, renderer: TemplateRenderer):
    """payload의 모든 문자열 값에 템플릿 치환을 적용한 새 트리를 반환합니다."""
    match value:
        case dict():
            return {k: render_payload(v, renderer) for k, v in value.items()}
        case list():
            return [render_payload(v, renderer) for v in value]
        case str():
            return renderer.render(value)
        case _:
            return value


def _ref(entity: NamedEntity | Project | None) -> dict | None:
    return {"id": entity.id} if entity else None


def build_create_payload(
    options: IssueOptions,
    acting_user: str,
    issue_type: NamedEntity,
    project: Project,
    component: NamedEntity,
    priority: NamedEntity | None = None,
    version: NamedEntity | None = None,
) -> dict:
    """이슈 생성 payload를 만듭니다.

    보고자는 실행 사용자와 다를 때만 포함합니다. 같으면 Jira가 알아서 채웁니다.
    """
    fields: dict = {
        "components": [_ref(component)],
        "description": options.message,
        "issuetype": _ref(issue_type),
        "project": _ref(project),
        "summary": options.title,
    }
    if options.assignee:
        fields["assignee"] = {"name": options.assignee}
    if options.reporter and options.reporter != acting_user:
        fields["reporter"] = {"name": options.reporter}
    if priority:
        fields["priority"] = _ref(priority)
    if version:
        fields["versions"] = [_ref(version)]
    return {"fields": fields}


def build_update_payload(
    options: IssueOptions,
    issue_type: NamedEntity | None = None,
    component: NamedEntity | None = None,
    priority: NamedEntity | None = None,
    version: NamedEntity | None = None,
) -> dict:
    """이슈 수정 payload를 만듭니다.

    프로젝트와 보고자는 변경하지 않습니다. 빈 값이 그대로 남으므로
    템플릿 치환 후 prune_empty를 거쳐 제출해야 합니다.
    """
    fields = {
        "assignee": {"name": options.assignee} if options.assignee else None,
        "components": [_ref(component)] if component else None,
        "description": options.message,
        "issuetype": _ref(issue_type),
        "priority": _ref(priority),
        "summary": options.title,
        "versions": [_ref(version)] if version else None,
    }
    return {"fields": fields}


def expand_emoji(text: str, markdown: bool = False) -> str:
    """``:octocat:`` 같은 이모지 코드를 이미지 마크업으로 바꿉니다."""
    for code, url in EMOJI_IMAGES.items():
        image = f"![{code.strip(':')}]({url})" if markdown else f"!{url}!"
        text = text.replace(code, image)
    return text


def expand_comment(
    text: str,
    renderer: TemplateRenderer,
    signature: str = "",
    markdown: bool = False,
) -> str:
    """댓글 본문을 렌더링하고 서명을 덧붙입니다.

    ``markdown`` 이면 본문 전체를 ``{markdown}`` 매크로로 감쌉니다.
    """
    body = renderer.render(text)
    if signature:
        body = f"{body}\n\n{expand_emoji(renderer.render(signature), markdown)}"
    if markdown:
        body = f"{MARKDOWN_MACRO}{body}{MARKDOWN_MACRO}"
    return body
