"""Local fix strategies."""

import pytest

from codegen_recovery.core.types import FixKind
from codegen_recovery.fixes.engine import LocalFixEngine
from codegen_recovery.fixes.symbols import SymbolImport, default_symbol_table

pytestmark = pytest.mark.unit

APP = """import React from 'react';
import Header from 'src/components/Header';

export default function App() {
  return <Header />;
}
"""
ABOUT = """import Header from 'src/components/Header';

export const About = () => <Header />;
"""
HEADER = """export default function Header() {
  return <h1>Hi</h1>;
}
"""
PLAIN = """export function Panel() {
  return <div />;
}
"""


@pytest.fixture
def engine():
    return LocalFixEngine()


@pytest.fixture
def project():
    return {
        "src/App.tsx": APP,
        "src/pages/About.tsx": ABOUT,
        "src/components/Header.tsx": HEADER,
        "src/components/Panel.tsx": PLAIN,
    }


class TestBareSpecifier:
    def test_rewrites_every_importer(self, engine, project):
        error = '"src/components/Header" was a bare specifier, but was not remapped.'
        result = engine.try_fix(error, None, "src/App.tsx", project)

        assert result.applied
        assert result.kind is FixKind.BARE_SPECIFIER
        assert set(result.patched_files) == {"src/App.tsx", "src/pages/About.tsx"}
        assert "from './components/Header'" in result.patched_files["src/App.tsx"]
        assert (
            "from '../components/Header'"
            in result.patched_files["src/pages/About.tsx"]
        )
        assert result.explanation == (
            'Fixed 2 bare specifier import(s): "src/components/Header" '
            "→ relative path"
        )

    def test_bundler_resolution_error(self, engine, project):
        project["src/App.tsx"] = APP.replace(
            "'src/components/Header'", "'components/Header'"
        )
        error = 'Failed to resolve import "components/Header" from "src/App.tsx".'
        result = engine.try_fix(error, None, "src/App.tsx", project)

        assert result.applied
        assert set(result.patched_files) == {"src/App.tsx"}
        assert "from './components/Header'" in result.patched_files["src/App.tsx"]

    def test_unresolved_src_specifier_still_made_relative(self, engine, project):
        project["src/App.tsx"] = "import { api } from 'src/lib/api';\n"
        error = '"src/lib/api" was a bare specifier'
        result = engine.try_fix(error, None, "src/App.tsx", project)

        assert result.applied
        assert result.patched_files["src/App.tsx"] == (
            "import { api } from './lib/api';\n"
        )

    def test_npm_package_is_not_touched(self, engine, project):
        error = 'Failed to resolve import "lodash" from "src/App.tsx".'
        result = engine.try_fix(error, None, "src/App.tsx", project)

        assert not result.applied
        assert result.explanation == "No local fix available"

    def test_declines_when_nothing_imports_the_specifier(self, engine, project):
        error = '"src/components/Footer" was a bare specifier'
        result = engine.try_fix(error, None, "src/App.tsx", project)

        assert not result.applied
        assert result.explanation == 'No file imports "src/components/Footer"'


class TestMissingImport:
    def test_merges_into_existing_module_import(self, engine, project):
        result = engine.try_fix(
            "ReferenceError: useState is not defined", None, "src/App.tsx", project
        )

        assert result.applied
        assert result.kind is FixKind.MISSING_IMPORT
        assert result.explanation == "Added missing import: useState from 'react'"
        assert result.patched_files["src/App.tsx"].startswith(
            "import React, { useState } from 'react';\n"
        )

    def test_type_symbol(self, engine, project):
        result = engine.try_fix(
            "Cannot find name 'FC'.", None, "src/components/Panel.tsx", project
        )

        assert result.applied
        assert result.patched_files["src/components/Panel.tsx"].startswith(
            "import type { FC } from 'react';\n"
        )

    def test_icon_found_in_stack(self, engine, project):
        result = engine.try_fix(
            "Uncaught error in render",
            "ReferenceError: X is not defined\n    at Panel (Panel.tsx:3:5)",
            "src/components/Panel.tsx",
            project,
        )

        assert result.applied
        assert "import { X } from 'lucide-react';" in (
            result.patched_files["src/components/Panel.tsx"]
        )

    def test_safari_wording(self, engine, project):
        result = engine.try_fix(
            "Can't find variable: motion", None, "src/components/Panel.tsx", project
        )
        assert result.explanation == "Added missing import: motion from 'motion/react'"

    def test_second_run_reports_already_imported(self, engine, project):
        error = "useEffect is not defined"
        first = engine.try_fix(error, None, "src/components/Panel.tsx", project)
        patched = {**project, **first.patched_files}
        second = engine.try_fix(error, None, "src/components/Panel.tsx", patched)

        assert first.applied
        assert not second.applied
        assert second.explanation == "useEffect is already imported"

    def test_missing_target(self, engine, project):
        result = engine.try_fix(
            "useState is not defined", None, "src/Missing.tsx", project
        )

        assert not result.applied
        assert result.explanation == "Target file not found: src/Missing.tsx"

    def test_injected_symbol_table(self, project):
        table = default_symbol_table().extended(toast=SymbolImport("sonner"))
        engine = LocalFixEngine(symbols=table)
        result = engine.try_fix(
            "toast is not defined", None, "src/components/Panel.tsx", project
        )

        assert result.explanation == "Added missing import: toast from 'sonner'"


class TestUndefinedVariable:
    def test_named_export(self, engine, project):
        project["src/components/Button.tsx"] = "export function Button() {}\n"
        result = engine.try_fix(
            "ReferenceError: Button is not defined", None, "src/App.tsx", project
        )

        assert result.applied
        assert result.kind is FixKind.UNDEFINED_VARIABLE
        assert result.explanation == (
            "Added import for Button from './components/Button'"
        )
        assert "import { Button } from './components/Button';\n" in (
            result.patched_files["src/App.tsx"]
        )

    def test_default_export(self, engine, project):
        project["src/components/Card.tsx"] = "export default function Card() {}\n"
        result = engine.try_fix(
            "Card is not defined", None, "src/pages/About.tsx", project
        )

        assert "import Card from '../components/Card';\n" in (
            result.patched_files["src/pages/About.tsx"]
        )

    def test_interface_becomes_type_import(self, engine, project):
        project["src/types.ts"] = "export interface UserProfile {\n  id: string;\n}\n"
        result = engine.try_fix(
            "Cannot find name 'UserProfile'.", None, "src/App.tsx", project
        )

        assert "import type { UserProfile } from './types';\n" in (
            result.patched_files["src/App.tsx"]
        )

    def test_export_list(self, engine, project):
        project["src/utils/format.ts"] = (
            "const formatDate = (d: Date) => d.toISOString();\n"
            "export { formatDate };\n"
        )
        result = engine.try_fix(
            "formatDate is not defined", None, "src/App.tsx", project
        )

        assert "import { formatDate } from './utils/format';\n" in (
            result.patched_files["src/App.tsx"]
        )

    def test_refuses_to_guess_between_exporters(self, engine, project):
        project["src/a/Button.tsx"] = "export const Button = () => null;\n"
        project["src/b/Button.tsx"] = "export const Button = () => null;\n"
        result = engine.try_fix("Button is not defined", None, "src/App.tsx", project)

        assert not result.applied
        assert result.explanation == (
            "Button is exported by several files "
            "(src/a/Button.tsx, src/b/Button.tsx); not guessing"
        )

    @pytest.mark.parametrize(
        "path",
        ["node_modules/ui/Button.tsx", "docs/Button.md", "dist/Button.js"],
    )
    def test_ignored_and_non_source_files_are_not_exporters(
        self, engine, project, path
    ):
        project[path] = "export const Button = () => null;\n"
        result = engine.try_fix("Button is not defined", None, "src/App.tsx", project)

        assert not result.applied
        assert result.explanation == "No project file exports Button"

    def test_nested_export_is_not_top_level(self, engine, project):
        project["src/ns.ts"] = "namespace ui {\n  export const Button = 1;\n}\n"
        result = engine.try_fix("Button is not defined", None, "src/App.tsx", project)
        assert not result.applied


class TestEngine:
    def test_input_mapping_is_not_modified(self, engine, project):
        snapshot = dict(project)
        engine.try_fix("useState is not defined", None, "src/App.tsx", project)
        bare = '"src/components/Header" was a bare specifier'
        engine.try_fix(bare, None, "src/App.tsx", project)

        assert project == snapshot

    def test_unrecognized_error(self, engine, project):
        result = engine.try_fix("Out of memory", None, "src/App.tsx", project)

        assert not result.applied
        assert result.patched_files == {}
        assert result.kind is FixKind.NONE
        assert result.explanation == "No local fix available"
