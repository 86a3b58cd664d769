"""JiraService 단위 테스트 (HTTP 세션 모킹)."""

import unittest
from unittest.mock import Mock, patch

import requests

from jira_flow.config import JiraConfig
from jira_flow.exceptions import (
    AuthenticationError,
    ConfigError,
    JiraApiError,
    ResourceNotFoundError,
    flatten_error_body,
)
from jira_flow.models.issue import FieldKind
from jira_flow.services.jira_service import JiraService

API = "https://jira.example.com/rest/api/2"


def _response(status_code: int, body=None, text: str = "") -> Mock:
    resp = Mock(spec=requests.Response)
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 400
    resp.content = b"x" if body is not None else b""
    resp.text = text
    if body is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = body
    return resp


class JiraServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.service = JiraService(
            JiraConfig(base_url="https://jira.example.com", user="jdoe", api_token="secret"),
        )
        patcher = patch.object(self.service._session, "request")
        self.request = patcher.start()
        self.addCleanup(patcher.stop)


class TestRequestHandling(JiraServiceTestCase):
    """공통 요청/오류 처리 테스트."""

    def test_session_auth(self) -> None:
        self.assertEqual(self.service._session.auth, ("jdoe", "secret"))

    def test_structured_errors_are_flattened(self) -> None:
        self.request.return_value = _response(400, {
            "errorMessages": ["Issue could not be created."],
            "errors": {"components": "Component/s is required.", "summary": "You must specify a summary."},
        })
        with self.assertRaises(JiraApiError) as ctx:
            self.service.add_new_issue({"fields": {}})
        self.assertEqual(
            str(ctx.exception),
            "Issue could not be created.; components: Component/s is required.; "
            "summary: You must specify a summary.",
        )
        self.assertEqual(ctx.exception.status_code, 400)

    def test_rejected_credentials_raise_config_error(self) -> None:
        self.request.return_value = _response(401, text="Unauthorized")
        with self.assertRaises(AuthenticationError) as ctx:
            self.service.find_issue("LPS-1")
        self.assertIsInstance(ctx.exception, ConfigError)
        self.assertIn("401", str(ctx.exception))

    def test_non_json_error_keeps_status(self) -> None:
        self.request.return_value = _response(502, text="Bad Gateway")
        with self.assertRaises(JiraApiError) as ctx:
            self.service.list_priorities()
        self.assertIn("502", str(ctx.exception))

    def test_not_found(self) -> None:
        self.request.return_value = _response(404, {"errorMessages": ["No project could be found with key 'X'."]})
        with self.assertRaises(ResourceNotFoundError):
            self.service.get_project("X")

    def test_connection_error(self) -> None:
        self.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(JiraApiError):
            self.service.find_issue("LPS-1")

    def test_no_content_response(self) -> None:
        self.request.return_value = _response(204)
        self.service.update_issue("LPS-1", {"fields": {"summary": "X"}})
        self.request.assert_called_once_with(
            "PUT", f"{API}/issue/LPS-1", timeout=30, json={"fields": {"summary": "X"}},
        )


class TestEndpoints(JiraServiceTestCase):
    """엔드포인트별 파싱 테스트."""

    def test_find_issue(self) -> None:
        self.request.return_value = _response(200, {
            "id": "10001",
            "key": "LPS-123",
            "fields": {
                "summary": "Broken",
                "status": {"name": "Open"},
                "assignee": {"name": "jdoe"},
                "issuetype": {"name": "Bug"},
            },
        })
        issue = self.service.find_issue("LPS-123")
        self.assertEqual(issue.id, "10001")
        self.assertEqual(issue.status, "Open")
        self.assertEqual(issue.assignee, "jdoe")
        self.assertEqual(issue.reporter, "")
        self.assertEqual(issue.project_key, "LPS")

    def test_list_components(self) -> None:
        self.request.return_value = _response(200, [{"id": 500, "name": "JavaScript"}])
        components = self.service.list_components("LPS")
        self.assertEqual(components[0].id, "500")
        self.request.assert_called_once_with(
            "GET", f"{API}/project/LPS/components", timeout=30,
        )

    def test_list_transitions_expands_fields(self) -> None:
        self.request.return_value = _response(200, {"transitions": [{
            "id": "5",
            "name": "Resolve Issue",
            "to": {"name": "Resolved"},
            "fields": {
                "resolution": {
                    "name": "Resolution", "required": True, "schema": {"type": "resolution"},
                    "allowedValues": [{"id": "1", "name": "Fixed"}],
                },
                "fixVersions": {
                    "name": "Fix Version/s", "required": False,
                    "schema": {"type": "array"}, "allowedValues": [{"id": "7", "name": "1.0"}],
                },
                "comment": {"name": "Comment", "required": False, "schema": {"type": "comment"}},
                "labels": {"name": "Labels", "required": True, "schema": {"type": "array", "items": "string"}},
            },
        }]})
        [transition] = self.service.list_transitions("LPS-123")

        self.request.assert_called_once_with(
            "GET", f"{API}/issue/LPS-123/transitions", timeout=30,
            params={"expand": "transitions.fields"},
        )
        self.assertEqual(transition.to_status, "Resolved")
        self.assertIs(transition.fields["resolution"].kind, FieldKind.SINGLE_SELECT)
        self.assertTrue(transition.fields["resolution"].required)
        self.assertIs(transition.fields["fixVersions"].kind, FieldKind.MULTI_SELECT)
        self.assertIs(transition.fields["comment"].kind, FieldKind.TEXT)
        self.assertIs(transition.fields["labels"].kind, FieldKind.TEXT_LIST)
        self.assertTrue(transition.fields["labels"].kind.is_array)

    def test_assign_returns_raw_status(self) -> None:
        self.request.return_value = _response(404, {"errorMessages": ["nope"]})
        self.assertEqual(self.service.assign_issue("LPS-1", "ghost"), 404)
        self.request.assert_called_once_with(
            "PUT", f"{API}/issue/LPS-1/assignee", timeout=30, json={"name": "ghost"},
        )

    def test_browse_url(self) -> None:
        self.assertEqual(self.service.browse_url("LPS-1"), "https://jira.example.com/browse/LPS-1")


class TestFlattenErrorBody(unittest.TestCase):
    def test_only_field_errors(self) -> None:
        self.assertEqual(flatten_error_body({"errors": {"assignee": "bad"}}), "assignee: bad")

    def test_empty_body(self) -> None:
        self.assertEqual(flatten_error_body({}), "")


if __name__ == "__main__":
    unittest.main()
