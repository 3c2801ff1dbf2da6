"""Completeness heuristics: cut-off suffixes, extension rules, escape hatch."""

import pytest

from codegen_recovery.config.types import FrozenConfig
from codegen_recovery.parsing.completeness import (
    CompletenessAnalyzer,
    analyze,
    is_complete,
)
from tests.fixtures import responses

pytestmark = pytest.mark.unit


def _long_component(tail: str) -> str:
    items = "".join(
        f"export function Item{i}() {{\n  return <li>Item {i}</li>;\n}}\n"
        for i in range(60)
    )
    return items + tail


class TestCompleteFiles:
    """Well-formed files are accepted."""

    @pytest.mark.parametrize(
        ("path", "content"),
        [
            ("src/App.tsx", responses.APP_TSX),
            ("src/components/Header.tsx", responses.HEADER_TSX),
            ("src/index.css", responses.INDEX_CSS),
            ("package.json", responses.PACKAGE_JSON),
        ],
    )
    def test_sample_files_are_complete(self, path, content):
        assert is_complete(path, content)

    def test_prose_may_end_with_a_sentence(self):
        content = (
            "# Counter\n\nA small counter app built with React and Vite. "
            "Run npm install, then npm run dev."
        )
        assert analyze("README.md", content).complete

    def test_surrounding_whitespace_is_ignored(self):
        assert is_complete("src/App.tsx", f"\n\n{responses.APP_TSX}\n\n")


class TestIncompleteFiles:
    """Each rule reports the reason it rejected the content."""

    def test_short_content(self):
        verdict = analyze("src/a.ts", "const a = 1;")
        assert not verdict.complete
        assert verdict.reason == "too_short"

    @pytest.mark.parametrize(
        ("content", "reason"),
        [
            (
                "export const items = [\n  'alpha',\n  'beta',\n  'gamma',",
                "suffix:trailing_comma",
            ),
            (
                "export function render(props) {\n"
                "  const value = props.value;\n  if (value) {",
                "suffix:open_object",
            ),
            (
                "export function greet(name) {\n"
                "  const prefix = 'Greeting for';\n  const label = \"Hello",
                "suffix:unterminated_string",
            ),
            (
                'const html = `\n<div class="x">\n  ${name}\n</div>;\n'
                "export default html;",
                "suffix:unterminated_template",
            ),
            (
                "export const total = items.reduce((sum, item) => sum + item, 0)\n"
                "console.log(total",
                "no_proper_ending",
            ),
        ],
    )
    def test_cut_off_script(self, content, reason):
        verdict = analyze("src/module.ts", content)
        assert not verdict.complete
        assert verdict.reason == reason

    def test_invalid_json(self):
        content = '{"name": "app", "description": "demo app", "private": true'
        assert analyze("package.json", content).reason == "json_invalid"

    def test_unbalanced_markup_tags(self):
        content = (
            "export default function Card() {\n  return (\n"
            '    <div className="card">\n      <p>Body</p>\n  );\n}'
        )
        verdict = analyze("src/Card.tsx", content)
        assert not verdict.complete
        assert verdict.reason == "unbalanced_tags"

    @pytest.mark.parametrize(
        "line",
        [
            "const open = '{{';",
            "const tag = '<div>';",
            "const msg = isOpen ? '}' : 'it\\'s {';",
        ],
    )
    def test_single_quoted_strings_are_skipped_in_markup(self, line):
        content = responses.APP_TSX.replace(
            "export default", f"{line}\n\nexport default"
        )
        verdict = analyze("src/App.tsx", content)
        assert verdict.complete, verdict.reason

    def test_apostrophes_in_markup_text_are_not_strings(self):
        content = (
            "export default function Notice() {\n  return (\n"
            "    <p>Don't worry, it's {count} items. {'{'}</p>\n  );\n}"
        )
        assert is_complete("src/Notice.tsx", content)

    def test_quoted_closer_does_not_hide_open_braces(self):
        content = (
            "export default function Card() {\n  const close = '}';\n"
            "  if (ready) {\n"
            '  return <div className="card">Body</div>;\n'
        )
        verdict = analyze("src/Card.tsx", content)
        assert not verdict.complete
        assert verdict.reason == "unbalanced_braces"

    def test_generic_parameters_are_not_tags(self):
        content = (
            "export function first<T,>(items: Array<T>): T | undefined {\n"
            "  return items.length > 0 ? items[0] : undefined;\n}"
        )
        assert is_complete("src/first.tsx", content)


class TestLongFileEscapeHatch:
    """Long code with balanced braces is accepted even when rule 3 fails."""

    def test_long_file_with_unbalanced_tags_is_accepted(self):
        content = _long_component(
            "export function Footer() {\n  return <footer><p>Done</footer>;\n}"
        )
        verdict = analyze("src/List.tsx", content)
        assert verdict.complete
        assert verdict.reason == "long_file_escape_hatch"

    def test_short_file_gets_no_escape_hatch(self):
        content = "export function Footer() {\n  return <footer><p>Done</footer>;\n}"
        assert not is_complete("src/Footer.tsx", content)

    def test_cut_off_suffix_is_never_rescued(self):
        content = _long_component("export function Footer() {\n  return (")
        assert analyze("src/List.tsx", content).reason == "suffix:open_call"


class TestAnalyzerConfiguration:
    """Thresholds come from the constructor or a frozen config."""

    def test_analysis_is_idempotent(self):
        analyzer = CompletenessAnalyzer()
        first = analyzer.analyze("src/App.tsx", responses.APP_TSX)
        assert analyzer.analyze("src/App.tsx", responses.APP_TSX) == first

    def test_min_chars_is_configurable(self):
        analyzer = CompletenessAnalyzer(min_complete_chars=5)
        assert analyzer.is_complete("src/a.ts", "const a = 1;")

    def test_from_config(self):
        config = FrozenConfig(min_complete_chars=5, brace_tolerance=3)
        analyzer = CompletenessAnalyzer.from_config(config)
        assert analyzer.min_complete_chars == 5
        assert analyzer.brace_tolerance == 3
        assert analyzer.long_file_threshold == config.long_file_threshold

    def test_verdict_is_truthy_when_complete(self):
        assert analyze("src/App.tsx", responses.APP_TSX)
        assert not analyze("src/a.ts", "x")
