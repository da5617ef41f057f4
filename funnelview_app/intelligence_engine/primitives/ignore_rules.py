# =============================================================================
# IgnoreRules
#
# Classifies dimension values as excluded using literal, glob or regex rules.
# Rules are maintained elsewhere; this module only evaluates them.
#
# Dependencies:
#   - pandas as pd
#   - re
# =============================================================================

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

import pandas as pd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IgnoreRule:
    """A single exclusion rule as stored by the rules collaborator."""
    id: Optional[int]
    pattern: str
    is_glob: bool = False
    is_regex: bool = False
    notes: str = ""

    @property
    def kind(self) -> str:
        if self.is_regex:
            return "regex"
        if self.is_glob:
            return "glob"
        return "literal"


def glob_to_regex(pattern: str) -> str:
    """
    Convert a glob / SQL LIKE pattern to an anchored regex.
    `%` and `*` match any run of characters; everything else is literal.
    """
    parts = re.split(r"[%*]", pattern)
    return "^" + ".*".join(re.escape(part) for part in parts) + "$"


def compile_rule(rule: IgnoreRule) -> Optional[Pattern]:
    """
    Compile a glob or regex rule. Returns None for literal rules and for
    malformed patterns, which never match.
    """
    if rule.kind == "literal":
        return None
    source = rule.pattern if rule.kind == "regex" else glob_to_regex(rule.pattern)
    try:
        return re.compile(source)
    except re.error as e:
        logger.warning("Ignoring malformed %s rule %r (id=%s): %s", rule.kind, rule.pattern, rule.id, e)
        return None


def _matches_compiled(value: str, rule: IgnoreRule, compiled: Optional[Pattern]) -> bool:
    if rule.kind == "literal":
        return value == rule.pattern
    if compiled is None:
        return False
    if rule.kind == "glob":
        return compiled.fullmatch(value) is not None
    return compiled.search(value) is not None


def compile_rules(rules: List[IgnoreRule]) -> List[Tuple[IgnoreRule, Optional[Pattern]]]:
    """Compile every rule once. Malformed rules are logged here, once each."""
    return [(rule, compile_rule(rule)) for rule in rules or []]


def rule_matches(value: str, rule: IgnoreRule) -> bool:
    return _matches_compiled(value, rule, compile_rule(rule))


def _any_match(value: str, compiled_rules: List[Tuple[IgnoreRule, Optional[Pattern]]]) -> bool:
    return any(_matches_compiled(value, rule, compiled) for rule, compiled in compiled_rules)


def is_ignored(value: str, rules: List[IgnoreRule]) -> bool:
    """True when any rule matches `value`."""
    return _any_match(value, compile_rules(rules))


def exclude_ignored(rows: pd.DataFrame, rules: List[IgnoreRule], dimension_col: str = "dimension_value") -> pd.DataFrame:
    """
    Drop rows whose dimension value matches an ignore rule.
    Applied before aggregation so ignored values leave totals as well as rankings.
    """
    if not rules or rows.empty:
        return rows.copy()
    values = rows[dimension_col].astype(str)
    compiled_rules = compile_rules(rules)
    verdicts = {v: _any_match(v, compiled_rules) for v in values.unique()}
    mask = values.map(verdicts).astype(bool)
    dropped = int(mask.sum())
    if dropped:
        logger.debug("Excluded %d rows matching %d ignore rules", dropped, len(rules))
    return rows.loc[~mask].copy()
