"""Keyword dictionaries and problem category definitions.

The built-in lexicon covers Japanese App Store vocabulary plus common English
terms. A YAML file can override any section; sections it omits keep their
defaults.
"""

import logging
import os
import re
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

import yaml

from .models import Solution

logger = logging.getLogger(__name__)

_ASCII_TERM_RE = re.compile(r"^[a-z0-9][a-z0-9 /&'-]*$")


def contains_term(text: str, term: str) -> bool:
    """Case-insensitive term lookup in already lowercased text.

    ASCII terms must start on a word boundary ("ui" does not hit "quite");
    other terms (Japanese) are plain substrings.
    """
    term = term.lower()
    if _ASCII_TERM_RE.match(term):
        return re.search(r"\b" + re.escape(term), text) is not None
    return term in text


@dataclass
class PhraseRule:
    """Emit `phrase` when the text hits any of `any_of`, at least one of
    `also_any` (if given) and none of `none_of`."""
    phrase: str
    any_of: List[str]
    also_any: List[str] = field(default_factory=list)
    none_of: List[str] = field(default_factory=list)

    def matches(self, text: str) -> bool:
        if not any(contains_term(text, t) for t in self.any_of):
            return False
        if self.also_any and not any(contains_term(text, t) for t in self.also_any):
            return False
        return not any(contains_term(text, t) for t in self.none_of)


@dataclass
class CategoryDefinition:
    """Canonical problem category used by the deterministic clustering."""
    name: str
    keywords: List[str]
    issue_markers: List[str]
    priority: str
    description: str


@dataclass
class Lexicon:
    positive_keywords: Dict[str, float]
    negative_keywords: Dict[str, float]
    functional_keywords: Dict[str, str]
    issue_rules: List[PhraseRule]
    praise_rules: List[PhraseRule]
    generic_issue: str
    generic_praise: str
    categories: List[CategoryDefinition]
    solution_templates: Dict[str, List[Solution]]

    def solutions_for(self, category: str) -> List[Solution]:
        """Two solution templates for a category, generic ones if it has none."""
        templates = self.solution_templates.get(category)
        if templates:
            return [replace(s) for s in templates]
        return [
            Solution(f"Investigate reported {category} problems in detail", "medium", "medium", "short"),
            Solution(f"Draw up an improvement plan for {category}", "low", "medium", "short"),
        ]


DEFAULT_POSITIVE_KEYWORDS: Dict[str, float] = {
    "良い": 0.3, "素晴らしい": 0.4, "おすすめ": 0.3, "満足": 0.3, "便利": 0.2,
    "使いやすい": 0.3, "快適": 0.3, "最高": 0.4, "完璧": 0.4, "感謝": 0.2,
    "気に入": 0.2, "愛用": 0.3, "重宝": 0.3, "助かる": 0.2, "すごい": 0.2,
    "優秀": 0.3, "安定": 0.2, "スムーズ": 0.2, "簡単": 0.2, "分かりやすい": 0.2,
    "good": 0.2, "great": 0.3, "excellent": 0.4, "amazing": 0.4, "perfect": 0.4,
    "love": 0.3, "like": 0.2, "awesome": 0.3, "fantastic": 0.4, "wonderful": 0.4,
}

DEFAULT_NEGATIVE_KEYWORDS: Dict[str, float] = {
    "悪い": 0.3, "最悪": 0.4, "使えない": 0.4, "不便": 0.3, "バグ": 0.3,
    "エラー": 0.3, "落ちる": 0.4, "重い": 0.2, "遅い": 0.2, "不満": 0.3,
    "ダメ": 0.3, "クソ": 0.4, "ゴミ": 0.4, "最低": 0.4, "ひどい": 0.3,
    "困る": 0.2, "問題": 0.2, "不具合": 0.3, "フリーズ": 0.3, "クラッシュ": 0.4,
    "使いにくい": 0.3, "分からない": 0.2, "面倒": 0.2, "うざい": 0.3, "イライラ": 0.3,
    "bad": 0.3, "terrible": 0.4, "awful": 0.4, "horrible": 0.4, "worst": 0.4,
    "hate": 0.4, "sucks": 0.4, "useless": 0.4, "broken": 0.4, "annoying": 0.3,
    "crash": 0.4, "bug": 0.3, "error": 0.3, "freeze": 0.3, "slow": 0.2,
}

DEFAULT_FUNCTIONAL_KEYWORDS: Dict[str, str] = {
    "アプリ": "app", "機能": "feature", "ui": "interface", "ux": "experience",
    "更新": "update", "バージョン": "version", "デザイン": "design", "操作": "operation",
    "画面": "screen", "ボタン": "button", "メニュー": "menu", "設定": "settings",
    "通知": "notification", "ログイン": "login", "同期": "sync", "データ": "data",
    "速度": "speed", "パフォーマンス": "performance", "セキュリティ": "security",
    "login": "login", "update": "update", "notification": "notification",
    "performance": "performance", "design": "design", "feature": "feature",
}

DEFAULT_ISSUE_RULES = [
    PhraseRule("Bug and error fixes needed", ["バグ", "エラー", "不具合", "bug", "error", "glitch"]),
    PhraseRule("Performance improvements needed", ["重い", "遅い", "フリーズ", "slow", "lag", "freeze"]),
    PhraseRule("UI/UX usability improvements needed", ["使いにくい", "分からない", "操作", "confusing", "hard to use"]),
    PhraseRule("Stability improvements needed", ["落ちる", "クラッシュ", "crash"]),
    PhraseRule(
        "Consider adding requested features",
        ["機能", "feature"],
        also_any=["ない", "欲しい", "missing", "wish", "please add"],
    ),
]

DEFAULT_PRAISE_RULES = [
    PhraseRule("Excellent usability", ["使いやすい", "簡単", "分かりやすい", "easy to use", "intuitive"]),
    PhraseRule("Highly practical", ["便利", "重宝", "助かる", "useful", "handy"]),
    PhraseRule("Stable performance", ["安定", "スムーズ", "smooth", "stable"]),
    PhraseRule("Attractive design", ["デザイン", "見た目", "綺麗", "design", "beautiful"]),
    PhraseRule("Rich feature set", ["機能", "feature"], none_of=["ない", "missing"]),
]

DEFAULT_CATEGORIES = [
    CategoryDefinition(
        "Bugs & Errors",
        ["バグ", "エラー", "不具合", "クラッシュ", "落ちる", "フリーズ", "動かない", "止まる",
         "broken", "bug", "error", "crash"],
        ["bug", "error", "fix", "stability"],
        "high",
        "Technical problems with how the app behaves",
    ),
    CategoryDefinition(
        "Performance",
        ["重い", "遅い", "速度", "パフォーマンス", "読み込み", "ロード", "待ち時間",
         "slow", "heavy", "performance", "loading", "lag"],
        ["performance", "speed"],
        "medium",
        "Problems with speed and responsiveness",
    ),
    CategoryDefinition(
        "UI/UX",
        ["使いにくい", "分からない", "操作", "ui", "ux", "デザイン", "見た目", "画面", "ボタン",
         "interface", "design", "confusing"],
        ["ui/ux", "usability"],
        "medium",
        "Problems with the user interface and ease of use",
    ),
    CategoryDefinition(
        "Feature Requests",
        ["機能", "欲しい", "ない", "追加", "実装", "対応", "feature", "function", "missing"],
        ["feature"],
        "low",
        "Requests for new features or changes to existing ones",
    ),
    CategoryDefinition(
        "Stability",
        ["安定", "クラッシュ", "落ちる", "強制終了", "応答なし", "crash", "stable", "unresponsive"],
        ["stability"],
        "high",
        "Problems with reliability and crashes",
    ),
    CategoryDefinition(
        "Security & Privacy",
        ["セキュリティ", "プライバシー", "個人情報", "安全", "漏洩", "保護", "security", "privacy"],
        ["security", "privacy"],
        "high",
        "Concerns about security and personal data",
    ),
    CategoryDefinition(
        "Support & Help",
        ["サポート", "ヘルプ", "問い合わせ", "回答", "解決", "support", "help"],
        ["support"],
        "medium",
        "Problems with customer support and help content",
    ),
]

DEFAULT_SOLUTION_TEMPLATES: Dict[str, List[Solution]] = {
    "Bugs & Errors": [
        Solution("Investigate and fix the reported bugs", "medium", "high", "short"),
        Solution("Strengthen the test process", "high", "high", "medium"),
    ],
    "Performance": [
        Solution("Carry out performance optimization", "high", "high", "medium"),
        Solution("Improve monitoring of resource usage", "low", "medium", "short"),
    ],
    "UI/UX": [
        Solution("Run usability tests", "medium", "high", "short"),
        Solution("Improve the interface", "high", "high", "medium"),
    ],
    "Feature Requests": [
        Solution("Prioritize user requests and plan their implementation", "medium", "medium", "medium"),
        Solution("Improve existing features", "low", "medium", "short"),
    ],
    "Stability": [
        Solution("Improve app stability", "high", "high", "medium"),
        Solution("Strengthen crash report analysis", "low", "medium", "short"),
    ],
}

GENERIC_ISSUE = "User experience improvements needed"
GENERIC_PRAISE = "Generally well received"


def default_lexicon() -> Lexicon:
    return Lexicon(
        positive_keywords=dict(DEFAULT_POSITIVE_KEYWORDS),
        negative_keywords=dict(DEFAULT_NEGATIVE_KEYWORDS),
        functional_keywords=dict(DEFAULT_FUNCTIONAL_KEYWORDS),
        issue_rules=list(DEFAULT_ISSUE_RULES),
        praise_rules=list(DEFAULT_PRAISE_RULES),
        generic_issue=GENERIC_ISSUE,
        generic_praise=GENERIC_PRAISE,
        categories=list(DEFAULT_CATEGORIES),
        solution_templates={k: list(v) for k, v in DEFAULT_SOLUTION_TEMPLATES.items()},
    )


def _weights(raw: Dict) -> Dict[str, float]:
    weights = {}
    for term, weight in raw.items():
        weight = float(weight)
        if not 0.0 < weight <= 0.5:
            raise ValueError(f"Keyword weight for '{term}' must be in (0, 0.5], got {weight}")
        weights[str(term).lower()] = weight
    return weights


def _rules(raw: List[Dict]) -> List[PhraseRule]:
    return [
        PhraseRule(
            phrase=r["phrase"],
            any_of=list(r["any_of"]),
            also_any=list(r.get("also_any", [])),
            none_of=list(r.get("none_of", [])),
        )
        for r in raw
    ]


def _categories(raw: List[Dict]) -> List[CategoryDefinition]:
    return [
        CategoryDefinition(
            name=c["name"],
            keywords=list(c["keywords"]),
            issue_markers=list(c.get("issue_markers", [])),
            priority=c.get("priority", "medium"),
            description=c.get("description", ""),
        )
        for c in raw
    ]


def _solution_templates(raw: Dict[str, List[Dict]]) -> Dict[str, List[Solution]]:
    return {
        name: [
            Solution(s["solution"], s.get("effort", "medium"), s.get("impact", "medium"), s.get("timeline", "medium"))
            for s in items
        ]
        for name, items in raw.items()
    }


def lexicon_from_mapping(data: Dict) -> Lexicon:
    """Build a lexicon from a mapping, keeping defaults for absent sections."""
    lexicon = default_lexicon()
    if "positive_keywords" in data:
        lexicon.positive_keywords = _weights(data["positive_keywords"])
    if "negative_keywords" in data:
        lexicon.negative_keywords = _weights(data["negative_keywords"])
    if "functional_keywords" in data:
        lexicon.functional_keywords = {str(k).lower(): str(v) for k, v in data["functional_keywords"].items()}
    if "issue_rules" in data:
        lexicon.issue_rules = _rules(data["issue_rules"])
    if "praise_rules" in data:
        lexicon.praise_rules = _rules(data["praise_rules"])
    if "generic_issue" in data:
        lexicon.generic_issue = str(data["generic_issue"])
    if "generic_praise" in data:
        lexicon.generic_praise = str(data["generic_praise"])
    if "categories" in data:
        lexicon.categories = _categories(data["categories"])
    if "solution_templates" in data:
        lexicon.solution_templates = _solution_templates(data["solution_templates"])
    return lexicon


def load_lexicon(path: Optional[str] = None) -> Lexicon:
    """Load the lexicon from YAML, falling back to the built-in one on any error."""
    if not path:
        return default_lexicon()
    try:
        with open(os.path.expanduser(path), "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError("top-level YAML value must be a mapping")
        lexicon = lexicon_from_mapping(data)
        logger.info(f"Loaded lexicon overrides from {path}: {sorted(data)}")
        return lexicon
    except Exception as e:
        logger.warning(f"Failed to load lexicon from {path}: {e}. Using defaults.")
        return default_lexicon()


def match_keywords(text: str, weights: Dict[str, float]) -> Tuple[float, List[str]]:
    """Sum the weights of every dictionary term found in `text`."""
    total = 0.0
    found = []
    for term, weight in weights.items():
        if contains_term(text, term):
            total += weight
            found.append(term)
    return total, found
