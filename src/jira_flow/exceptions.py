"""커스텀 예외 정의."""


class JiraFlowError(Exception):
    """프로젝트 최상위 예외."""


class ConfigError(JiraFlowError):
    """설정 관련 오류 (인증 정보 누락 등)."""


class AuthenticationError(ConfigError):
    """저장된 인증 정보가 거부됨 (HTTP 401)."""


class NotFoundError(JiraFlowError):
    """심볼릭 이름을 Jira 엔티티로 해석할 수 없음."""


class TransitionNotFoundError(NotFoundError):
    """요청한 상태 전환이 현재 이슈 상태에서 유효하지 않음."""


class ValidationError(JiraFlowError):
    """필수 입력값이 해석되지 않음."""


class JiraApiError(JiraFlowError):
    """Jira API 호출 실패."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ResourceNotFoundError(JiraApiError):
    """Jira 리소스를 찾을 수 없음 (HTTP 404)."""


class AssignError(JiraApiError):
    """담당자 지정 실패."""


def flatten_error_body(body: dict) -> str:
    """Jira 오류 응답을 한 줄짜리 메시지로 변환합니다.

    Jira는 ``{"errorMessages": [...], "errors": {"field": "msg"}}`` 형태로
    오류를 돌려줍니다. 최상위 메시지를 먼저, 필드별 메시지를 뒤에 붙입니다.

    Examples:
        >>> flatten_error_body({"errorMessages": ["Bad"], "errors": {"summary": "required"}})
        'Bad; summary: required'
    """
    parts = [str(m) for m in body.get("errorMessages") or [] if m]
    errors = body.get("errors") or {}
    parts.extend(f"{field}: {msg}" for field, msg in errors.items())
    return "; ".join(parts)
