"""Marker-delimited extraction and metadata block parsing."""

import pytest

from codegen_recovery.core.types import FileAction, IssueKind
from codegen_recovery.parsing.delimited import DelimitedExtractor
from tests.fixtures import responses

pytestmark = pytest.mark.unit


@pytest.fixture
def extractor():
    return DelimitedExtractor()


class TestClosedBlocks:
    def test_v2_response(self, extractor):
        document = extractor.extract(responses.DELIMITED_V2, version=2)

        assert [f.path for f in document.files] == [
            "src/App.tsx",
            "src/components/Header.tsx",
        ]
        assert document.files[0].content == responses.APP_TSX
        assert all(f.complete and not f.recovered for f in document.files)
        assert document.issues == ()
        assert not document.truncated

    def test_v2_metadata_blocks(self, extractor):
        document = extractor.extract(responses.DELIMITED_V2, version=2)

        assert document.meta.format == "marker"
        assert document.meta.version == "2.0"
        assert document.plan.create == ("src/App.tsx", "src/components/Header.tsx")
        assert document.plan.update == ()
        assert document.deleted_paths == ("src/legacy.ts",)
        assert [(m.path, m.declared_lines) for m in document.manifest] == [
            ("src/App.tsx", 12),
            ("src/components/Header.tsx", 7),
        ]
        assert document.manifest[0].action is FileAction.CREATE
        assert document.explanation == "Built a small counter app."
        assert document.batch.is_complete

    def test_plan_block_may_hold_json(self, extractor):
        text = (
            '<!-- PLAN -->\n{"create": ["src/App.tsx"], "delete": []}\n<!-- /PLAN -->\n'
            f"<!-- FILE:src/App.tsx -->\n{responses.APP_TSX}\n"
            "<!-- /FILE:src/App.tsx -->"
        )
        document = extractor.extract(text, version=1)
        assert document.plan.create == ("src/App.tsx",)

    def test_duplicate_path_keeps_the_last_block(self, extractor):
        text = (
            "<!-- FILE:src/a.ts -->\nold\n<!-- /FILE:src/a.ts -->\n"
            "<!-- FILE:src/a.ts -->\nnew\n<!-- /FILE:src/a.ts -->\n"
        )
        document = extractor.extract(text, version=1)
        assert [f.content for f in document.files] == ["new"]


class TestUnclosedBlocks:
    def test_open_only_sentinels_are_both_recovered(self, extractor):
        document = extractor.extract(responses.DELIMITED_OPEN_ONLY, version=1)
        files = {f.path: f for f in document.files}

        assert set(files) == {"src/components/Header.tsx", "src/App.tsx"}
        assert all(f.recovered for f in files.values())
        assert files["src/components/Header.tsx"].complete
        assert not files["src/App.tsx"].complete
        assert document.truncated
        assert [i.kind for i in document.issues] == [
            IssueKind.REPAIR_APPLIED,
            IssueKind.PARTIAL_RECOVERY,
        ]

    def test_mismatched_closer_ends_the_block(self, extractor):
        text = (
            f"<!-- FILE:src/App.tsx -->\n{responses.APP_TSX}\n"
            "<!-- /FILE:src/Main.tsx -->\ntrailing prose"
        )
        document = extractor.extract(text, version=1)

        assert document.files[0].content == responses.APP_TSX
        assert document.files[0].recovered
        assert "closed by the marker for" in document.issues[0].message
        assert not document.truncated

    def test_trailing_batch_block_ends_the_last_file(self, extractor):
        text = (
            f"<!-- FILE:src/App.tsx -->\n{responses.APP_TSX}\n"
            "<!-- BATCH -->\ncurrent: 1\ntotal: 2\nisComplete: false\n"
            "remaining: src/Footer.tsx\n<!-- /BATCH -->"
        )
        document = extractor.extract(text, version=1)

        assert document.files[0].content == responses.APP_TSX
        assert document.files[0].complete
        assert document.batch.remaining_paths == ("src/Footer.tsx",)
        assert document.batch.total == 2
        # Truncated because the batch is incomplete, not because of EOF
        assert document.truncated
        assert IssueKind.PARTIAL_RECOVERY not in [i.kind for i in document.issues]


class TestFatalDelimited:
    def test_no_file_blocks(self, extractor):
        document = extractor.extract("<!-- PLAN -->\ncreate: a.ts\n", version=1)
        assert document.files == ()
        assert document.issues[-1].kind is IssueKind.FATAL_PARSE

    def test_deletions_only_is_not_fatal(self, extractor):
        text = "<!-- PLAN -->\ndelete: src/old.ts\n<!-- /PLAN -->"
        document = extractor.extract(text, version=1)
        assert document.deleted_paths == ("src/old.ts",)
        assert document.issues == ()
