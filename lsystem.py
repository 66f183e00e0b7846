'''
lsystem.py -- string rewriting grammars (L-systems) for plants and trees.

A grammar is an axiom plus rules keyed by single symbols. A rule is one of

    'F[+F]'                          a fixed production
    ['F[+F]', 'F[-F]']               alternatives drawn uniformly
    [('F[+F]', 3), ('F', 1)]         alternatives drawn by weight
    [{'rule': 'F[+F]', 'w': 3}, ...] the same, dict form

Symbols without a rule are copied unchanged. Random choices come from an
explicit numpy Generator. Two expansions that share one generator see
different draws depending on call order; callers that need per-instance
reproducibility pass a generator seeded for that instance.
'''

import zlib

import numpy

import config
from turtle3d import SYMBOLS
from util import mix_seed


class GrammarError(ValueError):
    """A grammar that cannot be expanded safely."""


class Rule(object):
    __slots__ = ('symbol', 'options', 'cumulative')

    def __init__(self, symbol, options, weights=None):
        self.symbol = symbol
        self.options = list(options)
        if weights is None:
            self.cumulative = None
        else:
            w = numpy.asarray(weights, dtype=numpy.float64)
            self.cumulative = numpy.cumsum(w / w.sum())

    def choose(self, rng):
        if len(self.options) == 1:
            return self.options[0]
        if self.cumulative is None:
            return self.options[int(rng.integers(len(self.options)))]
        idx = int(numpy.searchsorted(self.cumulative, rng.random(), side='right'))
        return self.options[min(idx, len(self.options) - 1)]


def _check_symbols(text, where):
    if not isinstance(text, str):
        raise GrammarError(f'{where}: expected a string, got {type(text).__name__}')
    for ch in text:
        if ch not in SYMBOLS and not ('A' <= ch <= 'Z'):
            raise GrammarError(f'{where}: unknown symbol {ch!r}')


def compile_rule(symbol, rule):
    if not isinstance(symbol, str) or len(symbol) != 1:
        raise GrammarError(f'rule key {symbol!r} must be a single symbol')
    where = f'rule {symbol!r}'
    if isinstance(rule, str):
        _check_symbols(rule, where)
        return Rule(symbol, [rule])
    if not isinstance(rule, (list, tuple)) or len(rule) == 0:
        raise GrammarError(f'{where}: expected a string or a non-empty list of alternatives')
    options = []
    weights = []
    for alt in rule:
        if isinstance(alt, str):
            options.append(alt)
            weights.append(None)
            continue
        if isinstance(alt, dict):
            text, weight = alt.get('rule'), alt.get('w', alt.get('weight'))
        elif isinstance(alt, (list, tuple)) and len(alt) == 2:
            text, weight = alt
        else:
            raise GrammarError(f'{where}: bad alternative {alt!r}')
        try:
            weight = float(weight)
        except (TypeError, ValueError):
            raise GrammarError(f'{where}: weight {weight!r} is not a number')
        if not numpy.isfinite(weight) or weight <= 0:
            raise GrammarError(f'{where}: weight {weight!r} must be positive')
        options.append(text)
        weights.append(weight)
    for text in options:
        _check_symbols(text, where)
    weighted = [w is not None for w in weights]
    if any(weighted) and not all(weighted):
        raise GrammarError(f'{where}: mixes weighted and unweighted alternatives')
    return Rule(symbol, options, weights if all(weighted) else None)


def compile_rules(rules):
    if rules is None:
        return {}
    if not isinstance(rules, dict):
        raise GrammarError('rules must be a mapping of symbol to production')
    return {symbol: compile_rule(symbol, rule) for symbol, rule in rules.items()}


def max_expanded_length(axiom, compiled, iterations):
    """Worst-case length of the expanded string, taking the longest alternative each time."""
    symbols = set(axiom)
    for rule in compiled.values():
        symbols.add(rule.symbol)
        for text in rule.options:
            symbols.update(text)
    length = {ch: 1 for ch in symbols}
    for _ in range(iterations):
        nxt = {}
        for ch in symbols:
            rule = compiled.get(ch)
            if rule is None:
                nxt[ch] = length[ch]
            else:
                nxt[ch] = max(sum(length[c] for c in text) for text in rule.options)
        length = nxt
    return sum(length[ch] for ch in axiom)


def default_rng(axiom):
    return numpy.random.default_rng(mix_seed(zlib.crc32(axiom.encode('utf-8'))))


class Grammar(object):
    """A validated grammar plus the turtle options that go with it.

    Validation happens here, at registration: a grammar that names an
    unknown symbol, has an out of range iteration count, or whose
    worst-case expansion exceeds config.GRAMMAR_MAX_LENGTH raises
    GrammarError.
    """

    def __init__(self, axiom, rules=None, iterations=1, name=None, **options):
        self.name = name
        _check_symbols(axiom, 'axiom')
        max_iterations = getattr(config, 'GRAMMAR_MAX_ITERATIONS', 4)
        self.rules = rules or {}
        if not isinstance(iterations, int) or iterations < 0 or (self.rules and iterations > max_iterations):
            raise GrammarError(f'iterations must be an int in 0..{max_iterations}, got {iterations!r}')
        self.axiom = axiom
        self.iterations = iterations
        self.compiled = compile_rules(self.rules)
        self.max_length = max_expanded_length(axiom, self.compiled, iterations if self.compiled else 0)
        limit = getattr(config, 'GRAMMAR_MAX_LENGTH', 20000)
        if self.max_length > limit:
            raise GrammarError(f'{name or axiom!r}: expansion may reach {self.max_length} symbols (limit {limit})')
        self.options = options

    def rewrite(self, text, rng):
        out = []
        for ch in text:
            rule = self.compiled.get(ch)
            out.append(ch if rule is None else rule.choose(rng))
        return ''.join(out)

    def generate(self, rng=None):
        if rng is None:
            rng = default_rng(self.axiom)
        result = self.axiom
        if not self.compiled:
            return result
        for _ in range(self.iterations):
            result = self.rewrite(result, rng)
        return result

    def option(self, key, default=None):
        return self.options.get(key, default)

    def __repr__(self):
        return f'Grammar({self.name or self.axiom!r}, iterations={self.iterations})'


def expand(axiom, rules, iterations, rng=None):
    """Rewrite `axiom` with `rules` `iterations` times.

    Empty rules return the axiom for any non-negative iteration count; with
    rules the count is capped at config.GRAMMAR_MAX_ITERATIONS.
    """
    return Grammar(axiom, rules, iterations).generate(rng)
