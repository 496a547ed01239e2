"""Tests for text reports."""

from __future__ import annotations

from mcp_gitlab_actions.actions.flow import GIT_FLOW_SCHEMA
from mcp_gitlab_actions.actions.merge_requests import COMMENTS_SCHEMA, MERGE_REQUEST_SCHEMA
from mcp_gitlab_actions.actions.pipelines import JOB_SCHEMA, PIPELINE_SCHEMA
from mcp_gitlab_actions.actions.repositories import FILES_SCHEMA, OPERATIONS_SCHEMA
from mcp_gitlab_actions.actions.search import SEARCH_GROUP_TOOL, SEARCH_PROJECT_TOOL
from mcp_gitlab_actions.actions.variables import GROUP_VARIABLE_SCHEMA
from mcp_gitlab_actions.exceptions import GitLabApiError, InvalidFieldError, OperationError
from mcp_gitlab_actions.formatters import flow, merge_requests, pipelines, repositories, search
from mcp_gitlab_actions.formatters import variables as variable_fmt
from mcp_gitlab_actions.formatters.common import MAX_TEXT_LENGTH, Report, render_error, truncate
from mcp_gitlab_actions.formatters.projects import access_level_name
from mcp_gitlab_actions.models.ci import Variable
from mcp_gitlab_actions.models.common import Diff
from mcp_gitlab_actions.models.flow import FlowBranches, FlowFinish, FlowStep
from mcp_gitlab_actions.models.merge_requests import MergeRequest, MergeRequestDetails, Note
from mcp_gitlab_actions.models.pipelines import JobLog, Pipeline
from mcp_gitlab_actions.models.projects import Project
from mcp_gitlab_actions.models.repositories import Branch, Commit, FileContent


class TestCommon:
    def test_truncate_marks_cut(self):
        text = "x" * (MAX_TEXT_LENGTH + 25)
        result = truncate(text)
        assert result.endswith("... [truncated 25 characters]")
        assert result.startswith("x" * MAX_TEXT_LENGTH)

    def test_truncate_leaves_short_text(self):
        assert truncate("short") == "short"

    def test_report_skips_absent_fields(self):
        report = Report().field("Merged At", None).field("Title", "").field("State", "open")
        rendered = report.render()
        assert rendered == "State: open\n"

    def test_render_error_with_hint(self):
        error = OperationError("merge", "conflict", GitLabApiError(409, "Conflict"))
        text = render_error(error)
        assert text.splitlines()[0] == "Error: failed to merge: conflict"
        assert text.splitlines()[1].startswith("Hint: Conflict")

    def test_render_error_without_hint(self):
        assert render_error(InvalidFieldError("ref", "too long")) == "Error: invalid ref: too long"

    def test_access_level_names(self):
        assert access_level_name(40) == "Maintainer"
        assert access_level_name(7) == "Unknown (7)"


class TestMergeRequestReports:
    def test_empty_list(self):
        request = MERGE_REQUEST_SCHEMA.validate(
            {"action": "list", "project_path": "g/p", "list_options": {"state": "merged"}}
        )
        assert merge_requests.format_merge_request_list([], request) == (
            "No merge requests found in project g/p (state: merged).\n"
        )

    def test_open_mr_omits_merge_timestamps(self):
        request = MERGE_REQUEST_SCHEMA.validate({"action": "list", "project_path": "g/p"})
        mr = MergeRequest.from_api(
            {
                "iid": 4,
                "title": "Add login",
                "state": "opened",
                "created_at": "2024-03-01T10:00:00Z",
                "author": {"username": "ada"},
            }
        )
        text = merge_requests.format_merge_request_list([mr], request)
        assert "MR #4: Add login" in text
        assert "Created: 2024-03-01 10:00:00" in text
        assert "Author: ada" in text
        assert "Merged At" not in text
        assert "Closed At" not in text

    def test_details_fence_diffs(self):
        request = MERGE_REQUEST_SCHEMA.validate(
            {"action": "get", "project_path": "g/p", "mr_iid": 4}
        )
        details = MergeRequestDetails(
            merge_request=MergeRequest.from_api({"iid": 4, "title": "Add login"}),
            diffs=Diff.from_api(
                [
                    {"new_path": "app.py", "diff": "@@ -1 +1 @@\n-a\n+b", "new_file": True},
                    {"old_path": "old.py", "new_path": "new.py", "renamed_file": True},
                ]
            ),
        )
        text = merge_requests.format_merge_request_details(details, request)
        assert "Total files changed: 2" in text
        assert "Status: Added" in text
        assert "```diff\n@@ -1 +1 @@\n-a\n+b\n```" in text
        assert "Status: Renamed from old.py" in text

    def test_deleted_file_falls_back_to_old_path(self):
        diff = Diff.from_api({"old_path": "gone.py", "deleted_file": True})
        assert merge_requests.diff_lines(diff) == ["File: gone.py", "Status: Deleted"]

    def test_rendering_is_repeatable(self):
        request = MERGE_REQUEST_SCHEMA.validate({"action": "list", "project_path": "g/p"})
        mrs = MergeRequest.from_api([{"iid": 1, "title": "A"}, {"iid": 2, "title": "B"}])
        first = merge_requests.format_merge_request_list(mrs, request)
        assert first == merge_requests.format_merge_request_list(mrs, request)

    def test_details_without_diffs(self):
        request = MERGE_REQUEST_SCHEMA.validate(
            {"action": "get", "project_path": "g/p", "mr_iid": 4}
        )
        details = MergeRequestDetails(merge_request=MergeRequest.from_api({"iid": 4}))
        assert "No file changes found." in merge_requests.format_merge_request_details(
            details, request
        )

    def test_resolved_note(self):
        request = COMMENTS_SCHEMA.validate({"action": "list", "project_path": "g/p", "mr_iid": 2})
        note = Note.from_api(
            {
                "id": 10,
                "body": "Fixed",
                "resolvable": True,
                "resolved": True,
                "resolved_by": {"username": "lin"},
            }
        )
        text = merge_requests.format_comment_list([note], request)
        assert text.startswith("Comments for Merge Request !2:")
        assert "Resolved: true" in text
        assert "Resolved By: lin" in text

    def test_no_comments(self):
        request = COMMENTS_SCHEMA.validate({"action": "list", "project_path": "g/p", "mr_iid": 2})
        assert merge_requests.format_comment_list([], request) == (
            "No comments found for Merge Request !2.\n"
        )


class TestPipelineReports:
    def test_triggered_lists_variables(self):
        request = PIPELINE_SCHEMA.validate(
            {
                "action": "trigger",
                "project_path": "g/p",
                "trigger_options": {"ref": "main", "variables": {"B": "2", "A": "1"}},
            }
        )
        pipeline = Pipeline.from_api({"id": 55, "status": "created", "ref": "main"})
        text = pipelines.format_pipeline_triggered(pipeline, request)
        assert text.startswith("Pipeline triggered successfully!")
        assert "Pipeline #55" in text
        assert "Variables passed:\n  A: 1\n  B: 2" in text

    def test_log_tail_marks_truncation(self):
        request = JOB_SCHEMA.validate({"action": "log", "project_path": "g/p", "job_id": 8})
        log = JobLog(job_id=8, lines=["step 9", "step 10"], total_lines=10)
        text = pipelines.format_job_log(log, request)
        assert "Log for job #8 (last 2 of 10 lines):" in text
        assert "... [truncated 8 lines]" in text
        assert text.rstrip().endswith("step 9\nstep 10\n```")

    def test_empty_log(self):
        request = JOB_SCHEMA.validate({"action": "log", "project_path": "g/p", "job_id": 8})
        assert pipelines.format_job_log(JobLog(job_id=8), request) == (
            "No log output found for job #8.\n"
        )

    def test_empty_job_list(self):
        assert pipelines.format_job_list([], "pipeline #3") == (
            "No jobs found for the specified pipeline/criteria.\n"
        )


class TestRepositoryReports:
    def test_dry_run_cherry_pick_without_commit(self):
        request = OPERATIONS_SCHEMA.validate(
            {
                "action": "cherry_pick",
                "project_path": "g/p",
                "commit_sha": "abcdef1",
                "branch": "release/1.0",
                "cherry_pick_options": {"dry_run": True},
            }
        )
        assert repositories.format_cherry_pick(Commit(), request) == (
            "Dry run: Cherry-pick of commit abcdef1 to branch release/1.0 would succeed.\n"
        )

    def test_cherry_pick_shows_new_commit(self):
        request = OPERATIONS_SCHEMA.validate(
            {
                "action": "cherry_pick",
                "project_path": "g/p",
                "commit_sha": "abcdef1",
                "branch": "main",
            }
        )
        commit = Commit.from_api({"id": "99aa", "title": "Port fix", "author_name": "Ada"})
        text = repositories.format_cherry_pick(commit, request)
        assert text.startswith("Successfully cherry-picked commit abcdef1 to branch main:")
        assert "New Commit: 99aa" in text
        assert "Message: Port fix" in text

    def test_empty_file(self):
        request = FILES_SCHEMA.validate(
            {"action": "get_content", "project_path": "g/p", "file_path": "a.txt", "ref": "main"}
        )
        content = FileContent(file_path="a.txt", ref="main")
        assert repositories.format_file_content(content, request) == (
            "File: a.txt\nRef: main\nThe file is empty.\n"
        )


class TestVariableReports:
    def test_value_is_hidden(self):
        request = GROUP_VARIABLE_SCHEMA.validate(
            {"action": "get", "group_id": "platform", "key": "API_KEY"}
        )
        variable = Variable.from_api(
            {"key": "API_KEY", "value": "s3cr3t", "masked": True, "environment_scope": "*"}
        )
        text = variable_fmt.format_variable_details(variable, request)
        assert "s3cr3t" not in text
        assert "Value: [HIDDEN]" in text
        assert "Masked: true" in text
        assert "Protected: false" in text

    def test_empty_value(self):
        lines = variable_fmt.variable_lines(Variable(key="EMPTY", value=""))
        assert "Value: [EMPTY]" in lines

    def test_no_variables(self):
        request = GROUP_VARIABLE_SCHEMA.validate({"action": "list", "group_id": "platform"})
        assert "No variables found in this group." in variable_fmt.format_variable_list(
            [], request
        )


class TestFlowReports:
    def _request(self, **options):
        return GIT_FLOW_SCHEMA.validate(
            {
                "action": "finish",
                "project_path": "g/p",
                "branch_type": "release",
                "name": "1.2.0",
                "finish_options": options,
            }
        )

    def test_partial_failure_is_reported(self):
        result = FlowFinish(
            branch_type="release",
            name="1.2.0",
            branch="release/1.2.0",
            steps=[
                FlowStep(
                    target_branch="develop",
                    merge_request=MergeRequest.from_api(
                        {"iid": 12, "web_url": "https://gitlab.example.com/g/p/-/merge_requests/12"}
                    ),
                ),
                FlowStep(target_branch="master", error="GitLab API Error 409 Conflict: exists"),
            ],
            delete_requested=True,
            delete_error="GitLab API Error 403 Forbidden: protected branch",
        )
        text = flow.format_finished(result, self._request(delete_branch=True))
        assert "Created MR to develop: !12" in text
        assert "Failed to create MR to master: GitLab API Error 409" in text
        assert "Failed to delete release branch: GitLab API Error 403" in text
        assert "finished with 1 of 2 merge request step(s) failed" in text
        assert "is ready for review" not in text

    def test_hotfix_success(self):
        result = FlowFinish(
            branch_type="hotfix",
            name="1.0.1",
            branch="hotfix/1.0.1",
            steps=[
                FlowStep(target_branch="master", merge_request=MergeRequest.from_api({"iid": 1})),
                FlowStep(target_branch="develop", merge_request=MergeRequest.from_api({"iid": 2})),
            ],
            delete_requested=True,
            deleted=True,
        )
        text = flow.format_finished(result, self._request())
        assert "Deleted hotfix branch: hotfix/1.0.1" in text
        assert text.rstrip().endswith("Hotfix 1.0.1 is ready for urgent review and deployment!")

    def test_branches_filtered_by_type(self):
        request = GIT_FLOW_SCHEMA.validate({"action": "list", "project_path": "g/p"})
        result = FlowBranches(
            branch_type="feature",
            feature=[Branch(name="feature/login")],
            hotfix=[Branch(name="hotfix/1.0.1")],
        )
        text = flow.format_branches(result, request)
        assert "Feature Branches:\n  - feature/login" in text
        assert "Hotfix Branches" not in text
        assert "Summary: 1 feature, 0 release, 1 hotfix branches" in text


class TestSearchReports:
    def test_no_results_names_group(self):
        request = SEARCH_GROUP_TOOL.schema.validate(
            {"scope": "blobs", "query": "TODO", "group_id": "platform"}
        )
        assert search.format_results([], request) == (
            "No results found for query 'TODO' in scope 'blobs' within group 'platform'\n"
        )

    def test_commit_message_is_cut(self):
        request = SEARCH_PROJECT_TOOL.schema.validate(
            {"scope": "commits", "query": "fix", "project_id": "g/p"}
        )
        commit = Commit.from_api(
            {"id": "abc", "title": "Fix", "message": "Fix\nline 2\nline 3\nline 4\nline 5"}
        )
        text = search.format_results([commit], request)
        assert text.startswith("Found 1 commit(s):")
        assert "Message: Fix line 2 line 3..." in text
        assert "line 4" not in text

    def test_project_description_is_cut(self):
        request = SEARCH_GROUP_TOOL.schema.validate(
            {"scope": "projects", "query": "api", "group_id": "platform"}
        )
        project = Project.from_api(
            {"id": 3, "name": "api", "description": "d" * (MAX_TEXT_LENGTH + 10)}
        )
        text = search.format_results([project], request)
        assert "... [truncated 10 characters]" in text
        assert "d" * (MAX_TEXT_LENGTH + 1) not in text
