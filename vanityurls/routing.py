import logging
from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Any, Iterable

from .patterns import parse_pattern

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiteralRule:
    path: str
    payload: Any = None


@dataclass(frozen=True)
class TemplatedRule:
    pattern: str
    prefix: str
    placeholder: str
    suffix: str
    payload: Any = None


Rule = LiteralRule | TemplatedRule


@dataclass(frozen=True)
class Match:
    """
    Result of a rule set lookup.

    `path` is the span of the query consumed by the rule, `subpath` what
    follows it (no leading slash) and `captured` the placeholder value for
    templated rules.
    """
    rule: Rule
    path: str
    subpath: str = ''
    captured: str | None = None

    def expand(self, template: str) -> str:
        """Substitute the captured value for the rule's placeholder in `template`."""
        if self.captured is None:
            return template
        return template.replace(self.rule.placeholder, self.captured)


@dataclass(frozen=True)
class RuleSet:
    """
    Immutable collection of rules.

    Literal rules are kept sorted by path and always outrank templated rules,
    which keep their configuration order.
    """
    literals: tuple[LiteralRule, ...] = ()
    templated: tuple[TemplatedRule, ...] = ()
    _paths: tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, '_paths', tuple(rule.path for rule in self.literals))

    def __len__(self) -> int:
        return len(self.literals) + len(self.templated)

    def find(self, path: str) -> Match | None:
        return find(self, path)


def normalize(path: str) -> str:
    """Strip one trailing slash, so '/portmidi/' and '/portmidi' are the same rule."""
    return path[:-1] if path.endswith('/') else path


def build_rule_set(literal_rules: Iterable[tuple[str, Any]] = (),
                   templated_rules: Iterable[tuple[str, Any]] = ()) -> RuleSet:
    """
    Build a rule set from (path, payload) pairs.

    :raises PatternError: a templated pattern is malformed.
    :raises ValueError: two literal paths are equal once normalized.
    """
    literals: dict[str, LiteralRule] = {}
    for path, payload in literal_rules:
        path = normalize(path)
        if path in literals:
            raise ValueError(f'duplicate path {path or "/"!r}')
        literals[path] = LiteralRule(path, payload)

    templated = []
    for pattern, payload in templated_rules:
        pattern = normalize(pattern)
        prefix, placeholder, suffix = parse_pattern(pattern)
        templated.append(TemplatedRule(pattern, prefix, placeholder, suffix, payload))

    rule_set = RuleSet(
        literals=tuple(literals[path] for path in sorted(literals)),
        templated=tuple(templated),
    )
    logger.debug('Built rule set: %d paths, %d path rules',
                 len(rule_set.literals), len(rule_set.templated))
    return rule_set


def find(rule_set: RuleSet, path: str) -> Match | None:
    """Find the rule serving `path`: literal rules first, then templated rules in order."""
    return _find_literal(rule_set, path) or _find_templated(rule_set, path)


def _residual(path: str, end: int) -> str:
    rest = path[end:]
    return rest[1:] if rest.startswith('/') else rest


def _find_literal(rule_set: RuleSet, path: str) -> Match | None:
    # Try the whole path, then each ancestor cut at a '/' boundary, longest first.
    paths = rule_set._paths
    end = len(path)
    while end >= 0:
        candidate = path[:end]
        i = bisect_left(paths, candidate)
        if i < len(paths) and paths[i] == candidate:
            return Match(rule_set.literals[i], candidate, _residual(path, end))
        end = path.rfind('/', 0, end)
    return None


def _find_templated(rule_set: RuleSet, path: str) -> Match | None:
    # The whole query must be prefix + one non-empty segment + suffix.
    query = normalize(path)
    for rule in rule_set.templated:
        if len(query) <= len(rule.prefix) + len(rule.suffix):
            continue
        if not (query.startswith(rule.prefix) and query.endswith(rule.suffix)):
            continue
        middle = query[len(rule.prefix):len(query) - len(rule.suffix)]
        if '/' in middle:
            continue
        return Match(rule, query, '', middle)
    return None
