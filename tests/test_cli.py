import json
import unittest
from types import SimpleNamespace
from unittest.mock import patch

import requests
from click.testing import CliRunner

import gitlab_changelog.cli as cli
from gitlab_changelog.release.models import Project


class DummyResponse(SimpleNamespace):
    def json(self):
        return json.loads(self.text)


class FakeGitLab:
    """Routes ``requests.get`` calls to canned GitLab payloads."""

    def __init__(self, projects, tags=(), merge_requests=(), commits=None):
        self.routes = {
            "/api/v4/projects": list(projects),
            "/api/v4/projects/1/repository/tags": list(tags),
            "/api/v4/projects/1/merge_requests": list(merge_requests),
        }
        self.commits = commits or {}
        self.calls = []

    def __call__(self, url, params=None, headers=None, timeout=None):
        self.calls.append((url, params))
        path = url.split("gitlab.test", 1)[1]
        if path.endswith("/repository/commits"):
            ref = (params or {}).get("ref_name")
            if ref not in self.commits:
                return DummyResponse(status_code=404, text='{"message":"404 Not Found"}')
            payload = self.commits[ref]
        else:
            payload = self.routes[path]
        return DummyResponse(status_code=200, text=json.dumps(payload))


PROJECTS = [{"id": 2, "name": "myproject-legacy"}, {"id": 1, "name": "myproject"}]
TAGS = [{"name": "v1", "commit": {"id": "c1", "committed_date": "2020-01-01"}}]
TAG_COMMITS = {
    "v1": [
        {"id": "c1", "title": "Add feature"},
        {"id": "c0", "title": "Merge branch 'x'"},
    ]
}
ARGS = ["http://gitlab.test", "myproject", "token"]


class TestArguments(unittest.TestCase):
    def test_wrong_argument_counts_show_help_without_network(self) -> None:
        runner = CliRunner()
        for args in ([], ["http://gitlab.test", "myproject"], ARGS + ["extra"]):
            with self.subTest(args=args):
                with patch("requests.get") as mock_get:
                    result = runner.invoke(cli.main, args)
                self.assertEqual(result.exit_code, cli.EXIT_SUCCESS)
                self.assertIn("Usage:", result.output)
                self.assertIn("--release_indicator", result.output)
                mock_get.assert_not_called()

    def test_malformed_options_show_help_without_network(self) -> None:
        runner = CliRunner()
        shapes = (
            ARGS + ["--release_indicator"],
            ARGS + ["--bogus", "x"],
            ARGS + ["--max-workers", "many"],
        )
        for args in shapes:
            with self.subTest(args=args):
                with patch("requests.get") as mock_get:
                    result = runner.invoke(cli.main, args)
                self.assertEqual(result.exit_code, cli.EXIT_SUCCESS)
                self.assertIn("Usage:", result.output)
                self.assertIn("Possible values for --release_indicator", result.output)
                mock_get.assert_not_called()

    def test_split_arguments(self) -> None:
        self.assertEqual(cli.split_arguments(("a", "b", "c")), ("a", "b", "c"))
        self.assertIsNone(cli.split_arguments(("a", "b")))

    def test_config_error(self) -> None:
        runner = CliRunner()
        with patch("requests.get") as mock_get:
            result = runner.invoke(cli.main, ["gitlab.test", "myproject", "token"])
        self.assertEqual(result.exit_code, cli.EXIT_CONFIG_ERROR)
        mock_get.assert_not_called()


class TestSelectProject(unittest.TestCase):
    def test_exact_case_sensitive_first_match(self) -> None:
        projects = [
            Project(id=1, name="MyProject"),
            Project(id=2, name="myproject"),
            Project(id=3, name="myproject"),
        ]
        self.assertEqual(cli.select_project(projects, "myproject").id, 2)
        self.assertIsNone(cli.select_project(projects, "myproj"))


class TestChangelog(unittest.TestCase):
    def test_tags_changelog(self) -> None:
        fake = FakeGitLab(PROJECTS, tags=TAGS, commits=TAG_COMMITS)
        runner = CliRunner()
        with patch("requests.get", fake):
            result = runner.invoke(cli.main, ARGS)
        self.assertEqual(result.exit_code, cli.EXIT_SUCCESS, result.output)
        self.assertIn("myproject - v1 (Released 2020-1-1)", result.output)
        commit_lines = [line for line in result.output.splitlines() if line.startswith("\t")]
        self.assertEqual(commit_lines, ["\tAdd feature"])
        self.assertIn(("http://gitlab.test/api/v4/projects", {"simple": "true", "search": "myproject"}), fake.calls)

    def test_unknown_indicator_falls_back_to_tags(self) -> None:
        runner = CliRunner()
        outputs = []
        for extra in ([], ["--release_indicator", "foo"]):
            fake = FakeGitLab(PROJECTS, tags=TAGS, commits=TAG_COMMITS)
            with patch("requests.get", fake):
                result = runner.invoke(cli.main, ARGS + extra)
            self.assertEqual(result.exit_code, cli.EXIT_SUCCESS, result.output)
            outputs.append([u for u, _ in fake.calls])
        self.assertEqual(outputs[0], outputs[1])
        self.assertNotIn("http://gitlab.test/api/v4/projects/1/merge_requests", outputs[1])

    def test_merge_requests_changelog(self) -> None:
        merge_requests = [
            {
                "source_branch": "feature-b",
                "target_branch": "master",
                "sha": "b2",
                "created_at": "2020-03-01",
            },
            {
                "source_branch": "feature-a",
                "target_branch": "master",
                "sha": "a1",
                "created_at": "2020-02-01",
            },
            {
                "source_branch": "wip",
                "target_branch": "develop",
                "sha": "w1",
                "created_at": "2020-01-01",
            },
        ]
        commits = {
            "feature-a": [{"id": "a1", "title": "Start A"}],
            "feature-b": [
                {"id": "b2", "title": "Finish B"},
                {"id": "b1", "title": "Merge branch 'master' into feature-b"},
            ],
        }
        fake = FakeGitLab(PROJECTS, merge_requests=merge_requests, commits=commits)
        runner = CliRunner()
        with patch("requests.get", fake):
            result = runner.invoke(cli.main, ARGS + ["--release_indicator", "merge_requests"])
        self.assertEqual(result.exit_code, cli.EXIT_SUCCESS, result.output)
        first = result.output.index("myproject - feature-a (Released 2020-2-1)")
        second = result.output.index("myproject - feature-b (Released 2020-3-1)")
        self.assertLess(first, second)
        self.assertNotIn("wip", result.output)
        self.assertNotIn("Merge branch", result.output)
        requested = [p.get("ref_name") for u, p in fake.calls if u.endswith("/repository/commits")]
        self.assertEqual(sorted(requested), ["feature-a", "feature-b"])

    def test_no_matching_project(self) -> None:
        fake = FakeGitLab([{"id": 2, "name": "MyProject"}], tags=TAGS, commits=TAG_COMMITS)
        runner = CliRunner()
        with patch("requests.get", fake):
            result = runner.invoke(cli.main, ARGS)
        self.assertEqual(result.exit_code, cli.EXIT_NO_PROJECT)
        self.assertIn("no project selected", result.output)
        self.assertEqual(len(fake.calls), 1)

    def test_transport_error(self) -> None:
        fake = FakeGitLab(PROJECTS, tags=TAGS, commits={})
        runner = CliRunner()
        with patch("requests.get", fake):
            result = runner.invoke(cli.main, ARGS)
        self.assertEqual(result.exit_code, cli.EXIT_TRANSPORT_ERROR)
        self.assertIn("404", result.output)
        self.assertNotIn("Released", result.output)

    @patch("gitlab_changelog.cli.GitLabClient.search_projects")
    def test_connection_failure(self, mock_search) -> None:
        from gitlab_changelog.api.gitlab_client import TransportError

        mock_search.side_effect = TransportError("Request failed: connection refused")
        result = CliRunner().invoke(cli.main, ARGS)
        self.assertEqual(result.exit_code, cli.EXIT_TRANSPORT_ERROR)
        self.assertIn("connection refused", result.output)

    def test_unexpected_error(self) -> None:
        runner = CliRunner()
        with patch("requests.get", side_effect=RuntimeError("boom")):
            result = runner.invoke(cli.main, ARGS)
        self.assertEqual(result.exit_code, cli.EXIT_GENERIC_ERROR)
        self.assertIn("boom", result.output)

    def test_requests_exception_is_transport_error(self) -> None:
        runner = CliRunner()
        with patch("requests.get", side_effect=requests.Timeout("timed out")):
            result = runner.invoke(cli.main, ARGS)
        self.assertEqual(result.exit_code, cli.EXIT_TRANSPORT_ERROR)
        self.assertIn("timed out", result.output)


if __name__ == "__main__":
    unittest.main()
