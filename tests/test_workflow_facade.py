"""워크플로우 Facade 단위 테스트."""

import unittest
from unittest.mock import Mock

from fake_jira import FakeJiraService, ScriptedPrompter, make_config

from jira_flow.config import DefaultsConfig
from jira_flow.exceptions import AssignError, NotFoundError, ValidationError
from jira_flow.facades.workflow_facade import WorkflowFacade
from jira_flow.models.issue import IssueOptions


class FacadeTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.jira = FakeJiraService()
        self.prompter = ScriptedPrompter()
        self.opener = Mock(return_value=True)

    def _facade(self, **config) -> WorkflowFacade:
        return WorkflowFacade(
            make_config(**config), jira=self.jira, prompter=self.prompter, opener=self.opener,
        )


class TestApplyDefaults(FacadeTestCase):
    """설정 기본값 적용 테스트."""

    def test_project_scoped_defaults(self) -> None:
        facade = self._facade(defaults=DefaultsConfig(
            project="LPS", issue_type="Bug",
            component={"LPS": "JavaScript", "AUI": "CSS"},
            version={"LPS": "6.2.0"},
        ))
        options = facade.apply_defaults(IssueOptions())
        self.assertEqual(options.project, "LPS")
        self.assertEqual(options.issue_type, "Bug")
        self.assertEqual(options.component, "JavaScript")
        self.assertEqual(options.version, "6.2.0")
        self.assertEqual(options.assignee, "jdoe")
        self.assertFalse(options.assignee_explicit)
        self.assertEqual(options.reporter, "jdoe")

    def test_explicit_project_selects_its_component_default(self) -> None:
        facade = self._facade(defaults=DefaultsConfig(
            project="LPS", component={"LPS": "JavaScript", "AUI": "CSS"},
        ))
        options = facade.apply_defaults(IssueOptions(project="AUI"))
        self.assertEqual(options.component, "CSS")

    def test_aliases_expanded_after_defaults(self) -> None:
        facade = self._facade(
            defaults=DefaultsConfig(assignee="edu"),
            aliases={"edu": "eduardo.lundgren"},
        )
        options = facade.apply_defaults(IssueOptions())
        self.assertEqual(options.assignee, "eduardo.lundgren")
        self.assertTrue(options.assignee_explicit)
        self.assertEqual(self.jira.calls, [])


class TestCreateIssue(FacadeTestCase):
    """new 워크플로우 테스트."""

    def test_missing_component_fails_before_create(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            self._facade().create_issue(IssueOptions(project="LPS", title="X", issue_type="Bug"))
        self.assertEqual(str(ctx.exception), 'No component found, try --component "JavaScript".')
        self.assertEqual(self.jira.called("add_new_issue"), [])

    def test_unknown_issue_type_stops_pipeline_first(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            self._facade().create_issue(IssueOptions(project="LPS", issue_type="Epicc"))
        self.assertIn("--type", str(ctx.exception))
        self.assertEqual([c[0] for c in self.jira.calls], ["list_issue_types"])

    def test_unknown_project(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            self._facade().create_issue(
                IssueOptions(project="NOPE", issue_type="Bug", component="UI"),
            )
        self.assertIn("--project", str(ctx.exception))
        self.assertEqual(self.jira.called("list_components"), [])

    def test_optional_lookups_skipped_when_unspecified(self) -> None:
        result = self._facade().create_issue(IssueOptions(
            project="LPS", issue_type="Bug", component="JavaScript", title="X",
        ))
        self.assertEqual(self.jira.called("list_priorities"), [])
        self.assertEqual(self.jira.called("get_versions"), [])
        fields = result.payload["fields"]
        self.assertNotIn("priority", fields)
        self.assertNotIn("versions", fields)
        self.assertNotIn("reporter", fields)
        self.assertEqual(result.issue_key, "LPS-1")
        self.assertEqual(result.url, "https://jira.example.com/browse/LPS-1")

    def test_full_resolution_chain(self) -> None:
        result = self._facade().create_issue(IssueOptions(
            project="LPS", issue_type="Task", component="UI", priority="Major",
            version="7.0.0", title="{{ user }} did it", reporter="boss",
        ))
        self.assertEqual(
            [c[0] for c in self.jira.calls],
            ["list_issue_types", "get_project", "list_components",
             "list_priorities", "get_versions", "add_new_issue"],
        )
        fields = result.payload["fields"]
        self.assertEqual(fields["issuetype"], {"id": "3"})
        self.assertEqual(fields["project"], {"id": "10100"})
        self.assertEqual(fields["components"], [{"id": "501"}])
        self.assertEqual(fields["priority"], {"id": "3"})
        self.assertEqual(fields["versions"], [{"id": "701"}])
        self.assertEqual(fields["reporter"], {"name": "boss"})
        self.assertEqual(fields["summary"], "jdoe did it")

    def test_email_assignee_resolved_by_user_search(self) -> None:
        self.jira.users = [{"name": "jane", "emailAddress": "jane@example.com"}]
        result = self._facade().create_issue(IssueOptions(
            project="LPS", issue_type="Bug", component="UI", assignee="jane@example.com",
        ))
        self.assertEqual(result.payload["fields"]["assignee"], {"name": "jane"})

    def test_unknown_email_assignee(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            self._facade().create_issue(IssueOptions(
                project="LPS", issue_type="Bug", component="UI", assignee="ghost@example.com",
            ))
        self.assertIn("--assignee", str(ctx.exception))
        self.assertEqual(self.jira.called("add_new_issue"), [])


class TestUpdateIssue(FacadeTestCase):
    """update 워크플로우 테스트."""

    def test_update_prunes_empty_fields(self) -> None:
        result = self._facade().update_issue(IssueOptions(number="LPS-123", priority="Critical"))
        _, issue_key, payload = self.jira.called("update_issue")[0]
        self.assertEqual(issue_key, "LPS-123")
        self.assertEqual(payload, {"fields": {"priority": {"id": "2"}}})
        self.assertEqual(result.payload, payload)

    def test_update_skips_project_when_unknown(self) -> None:
        self._facade().update_issue(IssueOptions(number="LPS-123", component="UI"))
        self.assertEqual(self.jira.called("get_project"), [])
        self.assertEqual(self.jira.called("list_components"), [("list_components", "LPS")])

    def test_update_does_not_apply_type_defaults(self) -> None:
        facade = self._facade(defaults=DefaultsConfig(project="LPS", issue_type="Bug"))
        facade.update_issue(IssueOptions(number="LPS-123", title="Renamed"))
        self.assertEqual(self.jira.called("list_issue_types"), [])

    def test_update_with_nothing_to_change(self) -> None:
        with self.assertRaises(ValidationError):
            self._facade().update_issue(IssueOptions(number="LPS-123"))
        self.assertEqual(self.jira.called("update_issue"), [])

    def test_update_requires_issue_number(self) -> None:
        with self.assertRaises(ValidationError):
            self._facade().update_issue(IssueOptions(title="X"))


class TestCommentAssignBrowser(FacadeTestCase):
    """comment / assign / browser 워크플로우 테스트."""

    def test_comment_uses_issue_id_and_signature(self) -> None:
        self._facade(signature="-- {{ user }}").add_comment(
            IssueOptions(number="LPS-123", comment="LGTM"),
        )
        self.assertEqual(self.jira.called("find_issue"), [("find_issue", "LPS-123")])
        self.assertEqual(
            self.jira.called("add_comment"), [("add_comment", "9001", "LGTM\n\n-- jdoe")],
        )

    def test_assign_not_found(self) -> None:
        self.jira.assign_status = 404
        with self.assertRaises(AssignError) as ctx:
            self._facade().assign_issue(IssueOptions(number="LPS-123", assignee="ghost"))
        self.assertEqual(str(ctx.exception), "Either the issue or the user does not exist.")
        self.assertEqual(len(self.jira.called("assign_issue")), 1)

    def test_assign_status_table(self) -> None:
        cases = {
            400: "The user representation is malformed.",
            401: "You do not have permission to assign this issue.",
            500: "Unable to assign the issue (HTTP 500).",
        }
        for status, message in cases.items():
            with self.subTest(status=status):
                self.jira.assign_status = status
                with self.assertRaises(AssignError) as ctx:
                    self._facade().assign_issue(IssueOptions(number="LPS-123"))
                self.assertEqual(str(ctx.exception), message)
                self.assertEqual(ctx.exception.status_code, status)

    def test_assign_success_defaults_to_acting_user(self) -> None:
        result = self._facade().assign_issue(IssueOptions(number="LPS-123"))
        self.assertEqual(self.jira.called("assign_issue"), [("assign_issue", "LPS-123", "jdoe")])
        self.assertEqual(result.issue_key, "LPS-123")

    def test_browser_opens_url_without_api_calls(self) -> None:
        result = self._facade().open_in_browser(IssueOptions(number="LPS-123"))
        self.opener.assert_called_once_with("https://jira.example.com/browse/LPS-123")
        self.assertEqual(self.jira.calls, [])
        self.assertEqual(result.url, "https://jira.example.com/browse/LPS-123")


class TestTransitionWorkflow(FacadeTestCase):
    """transition 워크플로우 테스트."""

    def setUp(self) -> None:
        super().setUp()
        self.jira.transitions["LPS-123"] = [
            {"id": "4", "name": "Start Progress", "fields": {}},
            {"id": "5", "name": "Resolve Issue", "fields": {}},
        ]

    def test_transition_with_configured_assignee(self) -> None:
        facade = self._facade(defaults=DefaultsConfig(assignee="reviewer"))
        result = facade.transition_issue(IssueOptions(number="LPS-123"), "Start Progress")
        _, _, payload = self.jira.called("transition_issue")[0]
        self.assertEqual(payload["transition"]["id"], "4")
        self.assertEqual(payload["fields"]["assignee"]["name"], "reviewer")
        self.assertEqual(result.payload, payload)

    def test_menu_lists_actions_then_transitions(self) -> None:
        self.prompter.choices = [0]
        facade = self._facade(defaults=DefaultsConfig(assignee="reviewer"))
        facade.transition_with_menu(IssueOptions(number="LPS-123"))
        labels = self.prompter.asked[0][2]
        self.assertEqual(
            labels,
            ["Cancel", "Assign to me", "Assign to reviewer", "Open in browser",
             "Start Progress", "Resolve Issue"],
        )
        self.assertEqual(self.jira.called("transition_issue"), [])
        self.assertEqual(self.jira.called("update_issue"), [])

    def test_menu_hides_configured_assignee_equal_to_user(self) -> None:
        self.prompter.choices = [0]
        self._facade(defaults=DefaultsConfig(assignee="jdoe")).transition_with_menu(
            IssueOptions(number="LPS-123"),
        )
        self.assertNotIn("Assign to jdoe", self.prompter.asked[0][2])

    def test_menu_assign_uses_update_path(self) -> None:
        self.prompter.choices = [1]
        self._facade().transition_with_menu(IssueOptions(number="LPS-123"))
        self.assertEqual(
            self.jira.called("update_issue"),
            [("update_issue", "LPS-123", {"fields": {"assignee": {"name": "jdoe"}}})],
        )
        self.assertEqual(self.jira.called("assign_issue"), [])

    def test_menu_browser_is_pure_side_effect(self) -> None:
        self.prompter.choices = [2]
        self._facade().transition_with_menu(IssueOptions(number="LPS-123"))
        self.opener.assert_called_once()
        self.assertEqual(self.jira.called("update_issue"), [])
        self.assertEqual(self.jira.called("transition_issue"), [])

    def test_menu_transition_reuses_listed_transition(self) -> None:
        self.prompter.choices = [4]
        self._facade().transition_with_menu(IssueOptions(number="LPS-123"))
        _, _, payload = self.jira.called("transition_issue")[0]
        self.assertEqual(payload["transition"], {"id": "5"})
        self.assertEqual(len(self.jira.called("list_transitions")), 1)


if __name__ == "__main__":
    unittest.main()
