"""
Project-wide constants for codegen response recovery
"""  # noqa: D200, D212, D415

# ==============================================================================
# Detection
# ==============================================================================

# Only this many leading characters are inspected when picking a dialect
DETECTION_WINDOW = 64 * 1024

# Characters stripped from the start of a response before detection
INVISIBLE_PREFIX_CHARS = "\ufeff\u200b\u200c\u200d\u00a0"

# ==============================================================================
# Completeness Heuristics
# ==============================================================================

MIN_COMPLETE_CHARS = 50
LONG_FILE_THRESHOLD = 2000
BRACE_TOLERANCE = 1

# Suffix patterns only ever look at this many trailing characters
SUFFIX_WINDOW = 256

# ==============================================================================
# Extraction
# ==============================================================================

# Fenced blocks without a recognisable path need at least this much code
FALLBACK_MIN_BLOCK_CHARS = 50

# Paths never worth persisting from a generated response
IGNORED_PATH_PREFIXES: tuple[str, ...] = (
    "node_modules/",
    ".git/",
    "dist/",
    "build/",
    ".next/",
    ".nuxt/",
    ".cache/",
)
IGNORED_FILE_NAMES: tuple[str, ...] = (
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "bun.lockb",
    ".DS_Store",
    "Thumbs.db",
)

# ==============================================================================
# Local Fixes
# ==============================================================================

# Import statements spanning more lines than this are not scanned
MAX_IMPORT_STATEMENT_LINES = 50

# Source files searched for exports when resolving an undefined identifier
JS_SOURCE_EXTENSIONS: tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx", ".mjs")

# Extensions tried, in order, when resolving a bare module specifier
RESOLVABLE_EXTENSIONS: tuple[str, ...] = (".tsx", ".ts", ".jsx", ".js")

# ==============================================================================
# Configuration
# ==============================================================================

ENV_PREFIX = "CODEGEN_RECOVERY_"
TELEMETRY_ENV_VAR = "CODEGEN_RECOVERY_TELEMETRY"

# Section read from pyproject.toml: [tool.codegen_recovery]
PYPROJECT_SECTION = "codegen_recovery"
