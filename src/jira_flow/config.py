"""설정 관리 모듈.

환경변수와 YAML 설정 파일에서 Jira 연결 정보 및 기본값을 로드합니다.

설정 파일 예시 (~/.jira-flow.yaml)::

    jira:
      base_url: https://jira.example.com
      user: jdoe
      api_token: secret
    defaults:
      project: LPS
      issue_type: Bug
      component:
        LPS: JavaScript
      version:
        LPS: 6.2.0
    aliases:
      edu: eduardo.lundgren
    signature: "-- sent from jira-flow :octocat:"
    markdown: false
    transitions:
      Resolve Issue:
        Resolution: Fixed
        Fix Version/s: prompt
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from jira_flow.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".jira-flow.yaml"

# 전환 필드 설정값이 이 값이면 항상 사용자에게 묻습니다.
PROMPT_MARKER = "prompt"


@dataclass(frozen=True)
class JiraConfig:
    """Jira 연결 설정."""

    base_url: str
    user: str
    api_token: str
    api_version: str = "2"

    @property
    def api_url(self) -> str:
        return f"{self.base_url}/rest/api/{self.api_version}"


@dataclass(frozen=True)
class DefaultsConfig:
    """명령 옵션이 주어지지 않았을 때 사용할 기본값."""

    project: str = ""
    issue_type: str = ""
    assignee: str = ""
    component: dict[str, str] = field(default_factory=dict)
    version: dict[str, str] = field(default_factory=dict)

    def component_for(self, project: str) -> str:
        return self.component.get(project, "") if project else ""

    def version_for(self, project: str) -> str:
        return self.version.get(project, "") if project else ""


@dataclass(frozen=True)
class AppConfig:
    """애플리케이션 전체 설정."""

    jira: JiraConfig
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    aliases: dict[str, str] = field(default_factory=dict)
    signature: str = ""
    markdown: bool = False
    transitions: dict[str, dict[str, str]] = field(default_factory=dict)

    def resolve_alias(self, name: str) -> str:
        """사용자 별칭을 실제 사용자명으로 바꿉니다. 별칭이 없으면 그대로 반환."""
        return self.aliases.get(name, name) if name else name

    def transition_field_value(self, transition: str, field_name: str) -> str | None:
        """전환별 필드 기본값을 조회합니다."""
        value = self.transitions.get(transition, {}).get(field_name)
        return None if value is None else str(value)


def config_path() -> Path:
    """설정 파일 경로. ``JIRA_FLOW_CONFIG`` 환경변수로 바꿀 수 있습니다."""
    custom = os.environ.get("JIRA_FLOW_CONFIG", "").strip()
    return Path(custom).expanduser() if custom else DEFAULT_CONFIG_PATH


def _read_yaml(path: Path) -> dict:
    if not path.is_file():
        logger.debug("설정 파일 없음: %s", path)
        return {}
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"설정 파일을 읽을 수 없습니다: {path}\n  {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"설정 파일 형식이 올바르지 않습니다: {path}")
    logger.debug("설정 파일 로드: %s", path)
    return data


def _setting(env_name: str, section: dict, key: str) -> str:
    """환경변수가 우선이고, 없으면 설정 파일 값을 사용합니다."""
    value = os.environ.get(env_name, "").strip()
    if value:
        return value
    return str(section.get(key) or "").strip()


def _str_map(value) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items() if v is not None}


def load_config(path: Path | None = None) -> AppConfig:
    """환경변수와 설정 파일에서 설정을 로드합니다.

    인증 관련 환경변수 (설정 파일 ``jira:`` 섹션보다 우선):
        JIRA_BASE_URL, JIRA_USER, JIRA_API_TOKEN

    선택 환경변수:
        JIRA_API_VERSION (기본: 2)
        JIRA_FLOW_CONFIG (기본: ~/.jira-flow.yaml)

    Raises:
        ConfigError: 인증 정보가 없거나 설정 파일이 잘못되었을 때.
    """
    path = path or config_path()
    data = _read_yaml(path)
    jira_section = data.get("jira") or {}

    base_url = _setting("JIRA_BASE_URL", jira_section, "base_url")
    user = _setting("JIRA_USER", jira_section, "user")
    api_token = _setting("JIRA_API_TOKEN", jira_section, "api_token")

    missing = [
        name
        for name, value in (
            ("JIRA_BASE_URL", base_url),
            ("JIRA_USER", user),
            ("JIRA_API_TOKEN", api_token),
        )
        if not value
    ]
    if missing:
        raise ConfigError(
            f"Jira 인증 정보가 설정되지 않았습니다: {', '.join(missing)}\n"
            f"  환경변수를 설정하거나 {path} 파일을 작성하세요."
        )

    jira = JiraConfig(
        base_url=base_url.rstrip("/"),
        user=user,
        api_token=api_token,
        api_version=_setting("JIRA_API_VERSION", jira_section, "api_version") or "2",
    )

    defaults_section = data.get("defaults") or {}
    defaults = DefaultsConfig(
        project=str(defaults_section.get("project") or ""),
        issue_type=str(defaults_section.get("issue_type") or ""),
        assignee=str(defaults_section.get("assignee") or ""),
        component=_str_map(defaults_section.get("component")),
        version=_str_map(defaults_section.get("version")),
    )

    transitions = {
        str(name): _str_map(fields)
        for name, fields in (data.get("transitions") or {}).items()
    }

    return AppConfig(
        jira=jira,
        defaults=defaults,
        aliases=_str_map(data.get("aliases")),
        signature=str(data.get("signature") or ""),
        markdown=bool(data.get("markdown", False)),
        transitions=transitions,
    )


def save_credentials(
    base_url: str,
    user: str,
    api_token: str,
    path: Path | None = None,
) -> Path:
    """인증 정보를 설정 파일의 ``jira:`` 섹션에 저장합니다.

    기존 설정 파일의 다른 섹션은 유지됩니다.
    """
    path = path or config_path()
    data = _read_yaml(path)
    jira_section = dict(data.get("jira") or {})
    jira_section.update(
        {"base_url": base_url.rstrip("/"), "user": user, "api_token": api_token}
    )
    data["jira"] = jira_section

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, allow_unicode=True, sort_keys=False)
    path.chmod(0o600)
    logger.info("인증 정보 저장 완료: %s", path)
    return path
