"""Jira 이슈 및 관련 데이터 모델."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum


def _name_of(value: dict | None, key: str = "name") -> str:
    return (value or {}).get(key) or ""


@dataclass(frozen=True)
class JiraIssue:
    """Jira 이슈 정보."""

    key: str
    id: str = ""
    summary: str = ""
    status: str = ""
    assignee: str = ""
    reporter: str = ""
    project_key: str = ""
    issue_type: str = ""
    description: str = ""

    @classmethod
    def from_api_response(cls, data: dict) -> "JiraIssue":
        """Jira REST API 응답에서 JiraIssue 생성."""
        fields = data.get("fields") or {}
        return cls(
            key=data["key"],
            id=str(data.get("id", "")),
            summary=fields.get("summary") or "",
            status=_name_of(fields.get("status")),
            assignee=_name_of(fields.get("assignee")),
            reporter=_name_of(fields.get("reporter")),
            project_key=data["key"].split("-")[0],
            issue_type=_name_of(fields.get("issuetype")),
            description=fields.get("description") or "",
        )


@dataclass(frozen=True)
class NamedEntity:
    """이름과 ID를 가진 Jira 엔티티 (이슈 타입, 우선순위, 버전, 컴포넌트)."""

    id: str
    name: str

    @classmethod
    def from_api_response(cls, data: dict) -> "NamedEntity":
        return cls(id=str(data["id"]), name=data.get("name", ""))


@dataclass(frozen=True)
class Project:
    """Jira 프로젝트."""

    key: str
    id: str
    name: str = ""

    @classmethod
    def from_api_response(cls, data: dict) -> "Project":
        return cls(
            key=data.get("key", ""),
            id=str(data["id"]),
            name=data.get("name", ""),
        )


class FieldKind(Enum):
    """전환 화면 필드의 입력 형태."""

    TEXT = "text"
    TEXT_LIST = "text_list"
    SINGLE_SELECT = "single_select"
    MULTI_SELECT = "multi_select"

    @classmethod
    def from_schema(cls, schema: dict, allowed_values: list) -> "FieldKind":
        is_array = (schema or {}).get("type") == "array"
        if not allowed_values:
            return cls.TEXT_LIST if is_array else cls.TEXT
        return cls.MULTI_SELECT if is_array else cls.SINGLE_SELECT

    @property
    def is_array(self) -> bool:
        return self in (FieldKind.TEXT_LIST, FieldKind.MULTI_SELECT)


@dataclass(frozen=True)
class TransitionField:
    """전환 시 서버가 요구하는 필드 스키마."""

    field_id: str
    name: str
    required: bool = False
    kind: FieldKind = FieldKind.TEXT
    allowed_values: tuple[dict, ...] = ()

    @classmethod
    def from_api_response(cls, field_id: str, data: dict) -> "TransitionField":
        allowed = tuple(data.get("allowedValues") or ())
        return cls(
            field_id=field_id,
            name=data.get("name", field_id),
            required=bool(data.get("required", False)),
            kind=FieldKind.from_schema(data.get("schema") or {}, list(allowed)),
            allowed_values=allowed,
        )

    @staticmethod
    def label_of(value: dict) -> str:
        """허용값의 표시 이름 (name → value → id 순)."""
        return str(value.get("name") or value.get("value") or value.get("id", ""))


@dataclass(frozen=True)
class Transition:
    """Jira 이슈 상태 전환 정보."""

    id: str
    name: str
    to_status: str = ""
    fields: dict[str, TransitionField] = field(default_factory=dict)

    @classmethod
    def from_api_response(cls, data: dict) -> "Transition":
        """Jira transitions API 응답에서 Transition 생성."""
        fields = {
            field_id: TransitionField.from_api_response(field_id, schema)
            for field_id, schema in (data.get("fields") or {}).items()
        }
        return cls(
            id=str(data["id"]),
            name=data["name"],
            to_status=_name_of(data.get("to")),
            fields=fields,
        )


@dataclass
class IssueOptions:
    """한 번의 CLI 실행에서 넘어온 이슈 관련 옵션.

    ``assignee_explicit`` 는 담당자가 명령 옵션이나 설정 기본값으로
    지정되었는지를 나타냅니다. 실행 사용자로 대체된 경우에는 False 입니다.
    """

    number: str = ""
    assignee: str = ""
    assignee_explicit: bool = False
    reporter: str = ""
    project: str = ""
    issue_type: str = ""
    component: str = ""
    priority: str = ""
    version: str = ""
    title: str = ""
    message: str = ""
    comment: str = ""
    resolution: str = ""

    def to_dict(self) -> dict:
        return asdict(self)
