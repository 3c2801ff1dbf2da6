"""Well-known identifiers and the modules that export them.

The local fix engine consults this table when an error names an undefined
identifier. The table is immutable; build variants with
`SymbolTable.extended()` and inject them into the engine.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
import dataclasses
from functools import lru_cache
from types import MappingProxyType


@dataclasses.dataclass(frozen=True, slots=True)
class SymbolImport:
    """How to import one identifier.

    Attributes:
        module: Module specifier, e.g. ``"react"``.
        is_default: Import as the module's default export.
        is_type_only: Import with ``import type``.
    """

    module: str
    is_default: bool = False
    is_type_only: bool = False

    def __post_init__(self) -> None:
        if not self.module:
            raise ValueError("module must be a non-empty string")
        if self.is_default and self.is_type_only:
            raise ValueError("a symbol cannot be both a default and a type-only import")


class SymbolTable(Mapping[str, SymbolImport]):
    """Read-only identifier -> `SymbolImport` mapping."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, SymbolImport] | None = None) -> None:
        self._entries: Mapping[str, SymbolImport] = MappingProxyType(
            dict(entries or {})
        )

    def __getitem__(self, name: str) -> SymbolImport:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"SymbolTable({len(self)} symbols)"

    def extended(
        self, extra: Mapping[str, SymbolImport] | None = None, **symbols: SymbolImport
    ) -> SymbolTable:
        """Return a new table with `extra` entries added or replaced."""
        return SymbolTable({**self._entries, **(extra or {}), **symbols})


def _named(module: str, names: Iterable[str]) -> dict[str, SymbolImport]:
    return {name: SymbolImport(module) for name in names}


def _types(module: str, names: Iterable[str]) -> dict[str, SymbolImport]:
    return {name: SymbolImport(module, is_type_only=True) for name in names}


_REACT_VALUES = (
    "useState",
    "useEffect",
    "useCallback",
    "useMemo",
    "useRef",
    "useContext",
    "useReducer",
    "useLayoutEffect",
    "useImperativeHandle",
    "useDebugValue",
    "useDeferredValue",
    "useTransition",
    "useId",
    "useSyncExternalStore",
    "useInsertionEffect",
    "createContext",
    "forwardRef",
    "memo",
    "lazy",
    "Suspense",
    "Fragment",
    "StrictMode",
    "Children",
    "cloneElement",
    "isValidElement",
    "createElement",
)

_REACT_TYPES = (
    "FC",
    "ReactNode",
    "ReactElement",
    "CSSProperties",
    "ChangeEvent",
    "FormEvent",
    "MouseEvent",
    "KeyboardEvent",
    "FocusEvent",
    "SyntheticEvent",
    "RefObject",
    "MutableRefObject",
    "Dispatch",
    "SetStateAction",
)

_LUCIDE_ICONS = (
    "Activity",
    "AlertCircle",
    "AlertTriangle",
    "Archive",
    "ArrowLeft",
    "ArrowRight",
    "Award",
    "BarChart",
    "Bell",
    "Book",
    "BookOpen",
    "Bookmark",
    "Bot",
    "Calendar",
    "Camera",
    "Check",
    "CheckCircle",
    "CheckCircle2",
    "ChevronDown",
    "ChevronLeft",
    "ChevronRight",
    "ChevronUp",
    "Circle",
    "Clipboard",
    "Clock",
    "Cloud",
    "Code",
    "Copy",
    "CreditCard",
    "Database",
    "DollarSign",
    "Download",
    "Edit",
    "ExternalLink",
    "Eye",
    "EyeOff",
    "FileText",
    "Filter",
    "Flag",
    "Folder",
    "FolderOpen",
    "Gift",
    "Globe",
    "Grid",
    "Hash",
    "Heart",
    "HelpCircle",
    "History",
    "Home",
    "Image",
    "Inbox",
    "Info",
    "Key",
    "Layers",
    "Layout",
    "Lightbulb",
    "Link",
    "List",
    "Loader2",
    "Lock",
    "LogIn",
    "LogOut",
    "Mail",
    "MapPin",
    "Maximize",
    "Menu",
    "MessageCircle",
    "MessageSquare",
    "Mic",
    "Minimize",
    "Minus",
    "Monitor",
    "Moon",
    "MoreHorizontal",
    "MoreVertical",
    "Music",
    "Package",
    "Paperclip",
    "Pause",
    "Pencil",
    "Phone",
    "PieChart",
    "Play",
    "Plus",
    "PlusCircle",
    "Printer",
    "RefreshCw",
    "RotateCcw",
    "Rocket",
    "Save",
    "Search",
    "Send",
    "Server",
    "Settings",
    "Share",
    "Shield",
    "ShieldCheck",
    "ShoppingBag",
    "ShoppingCart",
    "Sidebar",
    "SkipBack",
    "SkipForward",
    "Smartphone",
    "Sparkles",
    "Square",
    "Star",
    "Sun",
    "Tag",
    "Terminal",
    "ThumbsDown",
    "ThumbsUp",
    "Trash",
    "Trash2",
    "TrendingDown",
    "TrendingUp",
    "Trophy",
    "Unlock",
    "Upload",
    "User",
    "UserPlus",
    "Users",
    "Video",
    "Volume2",
    "VolumeX",
    "Wallet",
    "Wand2",
    "Wifi",
    "X",
    "XCircle",
    "Zap",
    "ZoomIn",
    "ZoomOut",
)

_MOTION = (
    "motion",
    "AnimatePresence",
    "useAnimation",
    "useMotionValue",
    "useTransform",
    "useSpring",
    "useScroll",
    "useInView",
)

_DATE_FNS = (
    "format",
    "formatDistance",
    "formatRelative",
    "parseISO",
    "addDays",
    "subDays",
    "isAfter",
    "isBefore",
    "isValid",
)


@lru_cache(maxsize=1)
def default_symbol_table() -> SymbolTable:
    """The built-in table, built once per process."""
    entries: dict[str, SymbolImport] = {
        "React": SymbolImport("react", is_default=True),
        **_named("react", _REACT_VALUES),
        **_types("react", _REACT_TYPES),
        **_named("lucide-react", _LUCIDE_ICONS),
        **_named("motion/react", _MOTION),
        "clsx": SymbolImport("clsx", is_default=True),
        "cn": SymbolImport("clsx", is_default=True),
        "classNames": SymbolImport("classnames", is_default=True),
        **_named("date-fns", _DATE_FNS),
        "axios": SymbolImport("axios", is_default=True),
    }
    return SymbolTable(entries)
