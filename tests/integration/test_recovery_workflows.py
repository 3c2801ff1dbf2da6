"""End-to-end recovery workflows through the public API."""

import pytest

from codegen_recovery import (
    Failure,
    FatalParseError,
    FixKind,
    IssueKind,
    LocalFixEngine,
    ResponseParser,
    Success,
    plan_continuation,
    resolve_config,
)
from tests.fixtures import responses

pytestmark = pytest.mark.integration

PANEL = """export function Panel() {
  const [open, setOpen] = useState(false);
  return <div onClick={() => setOpen(!open)}>{open ? 'Open' : 'Closed'}</div>;
}"""


class TestMultiBatchGeneration:
    """A generation split over several responses."""

    def test_continue_until_complete(self):
        parser = ResponseParser()
        project: dict[str, str] = {}

        first = parser.parse(responses.ENVELOPE_V2_INCOMPLETE_BATCH)
        project.update(first.complete_files)
        request = plan_continuation(first)

        assert request is not None
        assert request.completed_paths == ("src/A.tsx",)

        second = parser.parse(
            responses.envelope_v2(
                {path: responses.APP_TSX for path in request.remaining_paths},
                batch={"current": 2, "total": 3, "isComplete": True},
            )
        )
        project.update(second.complete_files)

        assert set(project) == {"src/A.tsx", "src/B.tsx", "src/C.tsx"}
        assert plan_continuation(second) is None
        assert not second.issues_of(IssueKind.MANIFEST_MISMATCH)

    def test_truncated_file_is_regenerated(self):
        parser = ResponseParser()
        text = responses.envelope_v2(
            {"src/A.tsx": responses.APP_TSX, "src/B.tsx": responses.HEADER_TSX},
            batch={
                "current": 1,
                "total": 2,
                "isComplete": False,
                "remaining": ["src/C.tsx"],
            },
        )
        truncated = text[: text.index("return <h1")]

        request = plan_continuation(parser.parse(truncated))

        assert request is not None
        assert request.remaining_paths == ("src/C.tsx",)
        assert request.regenerate_paths == ("src/B.tsx",)
        assert "INCOMPLETE FILES TO REGENERATE" in request.prompt


class TestParseThenFix:
    """Recovered files feed straight into the local fix engine."""

    def test_runtime_error_fixed_without_regeneration(self):
        text = (
            "<!-- FILE:src/Panel.tsx -->\n"
            f"{PANEL}\n"
            "<!-- /FILE:src/Panel.tsx -->\n"
        )
        result = ResponseParser().parse(text)
        fix = LocalFixEngine().try_fix(
            "ReferenceError: useState is not defined",
            None,
            "src/Panel.tsx",
            result.contents,
        )

        assert fix.applied
        assert fix.kind is FixKind.MISSING_IMPORT
        recovered = result.contents["src/Panel.tsx"]
        assert fix.patched_files["src/Panel.tsx"] == (
            f"import {{ useState }} from 'react';\n{recovered}"
        )


class TestHandlerResults:
    def test_usable_response_is_a_success(self):
        outcome = ResponseParser().handle(responses.DELIMITED_V2)

        assert isinstance(outcome, Success)
        assert outcome.value.deleted_paths == ("src/legacy.ts",)

    def test_fatal_response_is_a_failure(self):
        outcome = ResponseParser().handle(responses.PROSE_ONLY)

        assert isinstance(outcome, Failure)
        assert isinstance(outcome.error, FatalParseError)
        assert outcome.error.result.is_fatal


class TestConfiguredPipeline:
    def test_resolved_config_flows_into_the_parser(self, isolated_project):
        root = isolated_project(
            "[tool.codegen_recovery]\nmax_response_chars = 100\ninclude_raw = true\n"
        )
        config = resolve_config(project_root=root).to_frozen()

        result = ResponseParser(config).parse(responses.ENVELOPE_V2)

        assert result.is_fatal
        [issue] = result.issues_of(IssueKind.SIZE_LIMIT)
        assert "limit" in issue.message
        assert result.raw == responses.ENVELOPE_V2
