"""
Tree-shaking for stylesheets: drop the rules whose selectors never appear in
the built HTML.

Usage is decided per selector. Every class, id, type, and attribute token in
a selector has to be found in the content (or be safelisted) for the
selector to survive; pseudo-classes, pseudo-elements, combinators, and `*`
are ignored. A rule survives if any of its selectors does, and keeps only
the surviving ones. Grouping at-rules such as `@media` are purged
recursively and dropped once empty; every other at-rule is kept as is.
"""
from __future__ import annotations

import re
import typing as t
from collections.abc import Iterable, Set
from pathlib import Path

import tinycss2
import tinycss2.ast as c2ast


# Runs of word characters, dashes, slashes, and colons, without a trailing
# colon. Kept exactly as-is: it decides which rules survive.
EXTRACTOR = re.compile(r'[\w\-/:]+(?<!:)', re.ASCII)
GROUPING_AT_RULES = frozenset({'media', 'supports', 'layer', 'container', 'document', '-moz-document'})

Token = tuple[str, ...]


def extract_tokens(content: str) -> set[str]:
    """
    Return every candidate class, id, or tag name in @content.
    """
    return set(EXTRACTOR.findall(content))


def collect_used_tokens(paths: Iterable[Path], encoding: str = 'utf-8') -> set[str]:
    """
    Union of `extract_tokens()` over the contents of @paths.
    """
    used: set[str] = set()
    for path in paths:
        used.update(extract_tokens(path.read_text(encoding)))
    return used


def strip_whitespace(content: list[c2ast.Node]):
    """
    Split @content into its leading whitespace, its body, and its trailing
    whitespace.
    """
    start = 0
    stop = len(content)
    while start < stop and content[start].type == 'whitespace':
        start += 1
    while stop > start and content[stop - 1].type == 'whitespace':
        stop -= 1
    return content[:start], content[start:stop], content[stop:]


def split_selectors(content: list[c2ast.Node]):
    """
    Split a comma-separated selector list into `[selector, separator]` pairs,
    where the separator is the comma and any whitespace following it.
    """
    selectors: list[list[list[c2ast.Node]]] = []
    current: list[c2ast.Node] = []
    for node in content:
        if node.type == 'literal' and node.value == ',':
            selectors.append([current, [node]])
            current = []
        elif node.type == 'whitespace' and selectors and not current:
            selectors[-1][1].append(node)
        else:
            current.append(node)
    selectors.append([current, []])
    return selectors


def _attribute_token(block: c2ast.SquareBracketsBlock) -> Token:
    parts = [n for n in block.content if n.type not in ('whitespace', 'comment')]
    name = parts[0].value if parts and parts[0].type == 'ident' else ''
    operator = ''.join(n.value for n in parts[1:] if n.type == 'literal')
    values = [n.value for n in parts[1:] if n.type in ('ident', 'string')]
    return ('attribute', name, operator, values[0] if values else '')


def selector_tokens(selector: list[c2ast.Node]) -> t.Iterator[Token]:
    """
    Yield `(kind, name)` tokens for the classes, ids, and type selectors in
    @selector, and `('attribute', name, operator, value)` for attribute
    selectors.
    """
    nodes = [n for n in selector if n.type != 'comment']
    i = 0
    while i < len(nodes):
        node = nodes[i]
        if node.type == 'literal' and node.value == '.':
            if i + 1 < len(nodes) and nodes[i + 1].type == 'ident':
                yield ('class', nodes[i + 1].value)
                i += 1
        elif node.type == 'literal' and node.value == ':':
            # Skip the pseudo-class or pseudo-element, including "::name" and
            # functional forms like ":not(...)".
            while i + 1 < len(nodes) and nodes[i + 1].type == 'literal' and nodes[i + 1].value == ':':
                i += 1
            i += 1
        elif node.type == 'hash':
            yield ('id', node.value)
        elif node.type == 'ident':
            yield ('type', node.value)
        elif node.type == '[] block':
            yield _attribute_token(t.cast(c2ast.SquareBracketsBlock, node))
        i += 1


def _attribute_value_used(operator: str, value: str, used: Set[str]):
    if operator in ('^=', '|='):
        return any(u.startswith(value) for u in used)
    if operator == '$=':
        return any(u.endswith(value) for u in used)
    if operator == '*=':
        return any(value in u for u in used)
    return value in used


def token_used(token: Token, used: Set[str], safelist: Set[str]) -> bool:
    if token[0] == 'attribute':
        _kind, name, operator, value = token
        if f'[{name}{operator}{value}]' in safelist:
            return True
        if name not in used and name not in safelist:
            return False
        return not value or _attribute_value_used(operator, value, used)
    return token[1] in used or token[1] in safelist


def purge_prelude(prelude: list[c2ast.Node], used: Set[str], safelist: Set[str]):
    """
    Return @prelude with its unused selectors removed, or None if none of
    them are used.
    """
    lead, body, trail = strip_whitespace(prelude)
    selectors = split_selectors(body)
    kept = [
        (selector, separator) for selector, separator in selectors
        if all(token_used(tok, used, safelist) for tok in selector_tokens(selector))
    ]
    if not kept:
        return None
    if len(kept) == len(selectors):
        return prelude

    result = list(lead)
    for i, (selector, separator) in enumerate(kept):
        result.extend(selector)
        if i < len(kept) - 1:
            result.extend(separator)
    result.extend(trail)
    return result


def purge_rules(nodes: Iterable[c2ast.Node], used: Set[str], safelist: Set[str]) -> list[c2ast.Node]:
    """
    Purge a list of parsed rules. The whitespace directly after a dropped rule
    is dropped with it.
    """
    kept: list[c2ast.Node] = []
    dropped = False
    for node in nodes:
        if dropped and node.type == 'whitespace':
            dropped = False
            continue
        dropped = False

        if node.type == 'error':
            raise ValueError(f'Unparseable CSS at line {node.source_line}: {node.message}')
        if node.type == 'qualified-rule':
            rule = t.cast(c2ast.QualifiedRule, node)
            prelude = purge_prelude(rule.prelude, used, safelist)
            if prelude is None:
                dropped = True
                continue
            rule.prelude = prelude
        elif node.type == 'at-rule':
            at_rule = t.cast(c2ast.AtRule, node)
            if at_rule.lower_at_keyword in GROUPING_AT_RULES and at_rule.content is not None:
                children = purge_rules(tinycss2.parse_rule_list(at_rule.content), used, safelist)
                if not any(c.type in ('qualified-rule', 'at-rule') for c in children):
                    dropped = True
                    continue
                at_rule.content = children
        kept.append(node)
    return kept


def purge_css(code: str, used: Set[str], safelist: Iterable[str] = ()) -> str:
    """
    Remove the rules of @code whose selectors use tokens missing from @used
    and @safelist.
    """
    nodes = tinycss2.parse_stylesheet(code, skip_comments=False, skip_whitespace=False)
    return tinycss2.serialize(purge_rules(nodes, used, frozenset(safelist)))
