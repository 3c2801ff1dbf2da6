"""The ``python -m codegen_recovery`` command line."""

import json

import pytest

from codegen_recovery.__main__ import main
from tests.fixtures import responses

pytestmark = pytest.mark.integration

PANEL = "export function Panel() {\n  const [open, setOpen] = useState(false);\n}\n"


@pytest.fixture
def project(isolated_project):
    """A project directory holding saved responses and a source tree."""
    root = isolated_project()
    (root / "batch1.json").write_text(
        responses.ENVELOPE_V2_INCOMPLETE_BATCH, encoding="utf-8"
    )
    (root / "prose.txt").write_text(responses.PROSE_ONLY, encoding="utf-8")
    (root / "app" / "src").mkdir(parents=True)
    (root / "app" / "src" / "Panel.tsx").write_text(PANEL, encoding="utf-8")
    (root / "app" / "node_modules" / "ui").mkdir(parents=True)
    (root / "app" / "node_modules" / "ui" / "index.js").write_text(
        "export const Panel = 1;\n", encoding="utf-8"
    )
    return root


class TestParseCommand:
    def test_summary(self, project, capsys):
        assert main(["parse", str(project / "batch1.json")]) == 0

        out = capsys.readouterr().out
        assert "Dialect:   envelope-v2" in out
        assert "src/A.tsx" in out

    def test_json_with_continuation(self, project, capsys):
        code = main(
            ["parse", str(project / "batch1.json"), "--json", "--continuation"]
        )
        info = json.loads(capsys.readouterr().out)

        assert code == 0
        assert info["dialect"] == "envelope-v2"
        assert info["batch"] == {"current": 1, "total": 3, "is_complete": False}
        assert "src/B.tsx" in info["continuation"]
        assert "batch 2 of 3" in info["continuation"]

    def test_fatal_parse_exits_non_zero(self, project, capsys):
        assert main(["parse", str(project / "prose.txt")]) == 1
        assert "Outcome:   fatal" in capsys.readouterr().out

    def test_telemetry_flag_without_env_explains_itself(self, project, capsys):
        main(["parse", str(project / "batch1.json"), "--telemetry"])
        assert "CODEGEN_RECOVERY_TELEMETRY=1" in capsys.readouterr().err


class TestFixCommand:
    def test_dry_run_leaves_files_alone(self, project, capsys):
        code = main(
            [
                "fix",
                str(project / "app"),
                "--error",
                "ReferenceError: useState is not defined",
                "--target",
                "src/Panel.tsx",
            ]
        )
        out = capsys.readouterr().out

        assert code == 0
        assert "Added missing import: useState from 'react'" in out
        assert "patched: src/Panel.tsx" in out
        assert "Dry run" in out
        assert (project / "app" / "src" / "Panel.tsx").read_text() == PANEL

    def test_write_applies_the_patch(self, project):
        code = main(
            [
                "fix",
                str(project / "app"),
                "--error",
                "useState is not defined",
                "--target",
                "src/Panel.tsx",
                "--write",
            ]
        )

        patched = (project / "app" / "src" / "Panel.tsx").read_text()
        assert code == 0
        assert patched.startswith("import { useState } from 'react';\n")

    def test_no_fix(self, project, capsys):
        code = main(
            [
                "fix",
                str(project / "app"),
                "--error",
                "Panel is not defined",
                "--target",
                "src/Other.tsx",
            ]
        )

        assert code == 1
        assert "Target file not found: src/Other.tsx" in capsys.readouterr().out


class TestConfigCommand:
    def test_prints_audit(self, isolated_project, capsys):
        isolated_project()
        assert main(["config"]) == 0

        out = capsys.readouterr().out
        assert "=== Effective Configuration ===" in out
        assert "include_raw: default:False" in out

    def test_configuration_error_exit_code(self, isolated_project, monkeypatch, capsys):
        isolated_project()
        monkeypatch.setenv("CODEGEN_RECOVERY_BRACE_TOLERANCE", "-3")

        assert main(["config"]) == 2
        assert "Configuration Error" in capsys.readouterr().err
