"""
FX spot rate matrix with triangulation.

An FX market of n currencies is fully defined by n-1 independent quotes
linking every currency to every other one. The builder collects quotes
("1 EUR = 1.40 USD"), and build() resolves them once:

1. Take quotes in the order they were added, keeping each one that links
   two not-yet-linked groups of currencies (a spanning tree).
2. Fail if more than one group remains (disconnected islands).
3. Value each currency in units of the first registered currency by
   walking the tree, then check every quote left out of the tree against
   the rate the tree implies (redundant quotes must agree within a
   relative tolerance). A conflicting quote is always the later one.
4. Cache the full n x n table rate[i, j] = value[i] / value[j].

The resulting matrix is reciprocal and triangulation-consistent by
construction, and rate lookups are O(1).
"""

from collections import deque
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union
import logging
import math
import re

import numpy as np
import pandas as pd

from .conventions import DEFAULT_FX_TOLERANCE
from .errors import (
    DisconnectedCurrencyError,
    InconsistentRateError,
    InvalidRateError,
    UnknownCurrencyError,
)


logger = logging.getLogger(__name__)

CurrencyPair = Tuple[str, str]

_CURRENCY_PATTERN = re.compile(r'^[A-Z]{3}$')
_PAIR_PATTERN = re.compile(r'^([A-Z]{3})[/]?([A-Z]{3})$')


def normalize_currency(ccy: str) -> str:
    """Upper-case, stripped currency code."""
    return str(ccy).upper().strip()


def parse_pair(pair: Union[str, CurrencyPair]) -> CurrencyPair:
    """
    Parse a currency pair from "EUR/USD", "eurusd" or ("EUR", "USD").

    Raises:
        ValueError: If the pair cannot be parsed
    """
    if isinstance(pair, tuple):
        if len(pair) != 2:
            raise ValueError(f"Currency pair must have two currencies: {pair}")
        return normalize_currency(pair[0]), normalize_currency(pair[1])
    match = _PAIR_PATTERN.match(normalize_currency(pair))
    if not match:
        raise ValueError(f"Invalid currency pair format: {pair}. Expected 'EUR/USD'")
    return match.group(1), match.group(2)


class FxRateMatrixBuilder:
    """
    Accumulates FX quotes and builds an FxRateMatrix.

    A later quote for the same two currencies, in either direction,
    replaces the earlier one.
    """

    def __init__(self, tolerance: float = DEFAULT_FX_TOLERANCE):
        if not tolerance > 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        self._tolerance = tolerance
        self._currencies: Dict[str, None] = {}
        self._quotes: Dict[CurrencyPair, float] = {}

    @property
    def currencies(self) -> Tuple[str, ...]:
        return tuple(self._currencies)

    @property
    def quotes(self) -> Dict[CurrencyPair, float]:
        return dict(self._quotes)

    def add_rate(self, ccy_a: str, ccy_b: str, rate: float) -> "FxRateMatrixBuilder":
        """
        Register a quote: 1 unit of ccy_a = rate units of ccy_b.

        Raises:
            InvalidRateError: If a currency code is malformed, rate is not a
                positive finite number, or ccy_a == ccy_b with a rate other than 1
        """
        a = normalize_currency(ccy_a)
        b = normalize_currency(ccy_b)
        for ccy in (a, b):
            if not _CURRENCY_PATTERN.match(ccy):
                raise InvalidRateError(a, b, rate, f"'{ccy}' is not a 3-letter currency code")
        try:
            rate = float(rate)
        except (TypeError, ValueError) as e:
            raise InvalidRateError(a, b, rate, "rate is not a number") from e
        if not math.isfinite(rate) or rate <= 0:
            raise InvalidRateError(a, b, rate, "rate must be positive and finite")
        if a == b and rate != 1.0:
            raise InvalidRateError(a, b, rate, "rate between a currency and itself must be 1")

        self._currencies.setdefault(a, None)
        self._currencies.setdefault(b, None)
        if a == b:
            return self

        if (b, a) in self._quotes:
            logger.debug("Replacing FX quote %s/%s with %s/%s", b, a, a, b)
            del self._quotes[(b, a)]
        elif (a, b) in self._quotes:
            logger.debug("Replacing FX quote %s/%s: %s -> %s", a, b, self._quotes[(a, b)], rate)
        self._quotes[(a, b)] = rate
        return self

    def add_rates(self, rates: Mapping[Union[str, CurrencyPair], float]) -> "FxRateMatrixBuilder":
        """Register several quotes, keyed by pair ("EUR/USD" or ("EUR", "USD"))."""
        for pair, rate in rates.items():
            a, b = parse_pair(pair)
            self.add_rate(a, b, rate)
        return self

    def add_currency(self, ccy: str) -> "FxRateMatrixBuilder":
        """Register a currency without a quote (equivalent to a self-quote of 1)."""
        return self.add_rate(ccy, ccy, 1.0)

    def linked(self, ccy_a: str, ccy_b: str) -> bool:
        """True if the quotes so far connect the two currencies."""
        a = normalize_currency(ccy_a)
        b = normalize_currency(ccy_b)
        if a == b:
            return a in self._currencies
        _, groups = self._spanning_tree()
        return any(a in group and b in group for group in groups)

    def _spanning_tree(self) -> Tuple[List[Tuple[CurrencyPair, float]], List[List[str]]]:
        """
        Quotes forming a spanning forest, earliest quotes first, plus the
        currency groups it connects (each group in registration order).
        """
        parent = {c: c for c in self._currencies}

        def find(c: str) -> str:
            while parent[c] != c:
                parent[c] = parent[parent[c]]
                c = parent[c]
            return c

        tree = []
        for (a, b), rate in self._quotes.items():
            root_a, root_b = find(a), find(b)
            if root_a != root_b:
                parent[root_b] = root_a
                tree.append(((a, b), rate))

        groups: Dict[str, List[str]] = {}
        for ccy in self._currencies:
            groups.setdefault(find(ccy), []).append(ccy)
        return tree, list(groups.values())

    def build(self) -> "FxRateMatrix":
        """
        Resolve all quotes into a full rate matrix.

        Raises:
            DisconnectedCurrencyError: If the quotes do not connect all currencies
            InconsistentRateError: If redundant quotes disagree beyond tolerance
        """
        currencies = list(self._currencies)
        if not currencies:
            return FxRateMatrix.empty()

        tree, groups = self._spanning_tree()
        if len(groups) > 1:
            logger.warning("FX quotes are disconnected: %s", groups)
            raise DisconnectedCurrencyError(groups)

        # Quote (a, b, r) means value[a] = r * value[b]; an edge (other, factor)
        # from ccy gives value[other] = value[ccy] * factor
        adjacency: Dict[str, List[Tuple[str, float]]] = {c: [] for c in currencies}
        for (a, b), rate in tree:
            adjacency[a].append((b, 1.0 / rate))
            adjacency[b].append((a, rate))

        # Value of one unit of each currency in the reference currency
        values: Dict[str, float] = {currencies[0]: 1.0}
        queue = deque([currencies[0]])
        while queue:
            ccy = queue.popleft()
            for other, factor in adjacency[ccy]:
                if other not in values:
                    values[other] = values[ccy] * factor
                    queue.append(other)

        for (a, b), quoted in self._quotes.items():
            implied = values[a] / values[b]
            if abs(implied - quoted) > self._tolerance * max(abs(quoted), abs(implied)):
                logger.warning("FX quote %s/%s=%r inconsistent with implied %r", a, b, quoted, implied)
                raise InconsistentRateError(a, b, quoted, implied, self._tolerance)

        vector = np.array([values[c] for c in currencies])
        matrix = FxRateMatrix(
            currencies=currencies,
            rates=vector[:, np.newaxis] / vector[np.newaxis, :],
            quotes=self._quotes,
            tolerance=self._tolerance
        )
        logger.debug("Built FX matrix: %d currencies from %d quotes", len(currencies), len(self._quotes))
        return matrix


def _check_table(currencies: Tuple[str, ...], rates: np.ndarray, tolerance: float) -> None:
    """
    Validate a full rate table.

    Raises:
        InvalidRateError: If an entry is not positive and finite
        InconsistentRateError: If the diagonal is not 1, or the table is not
            reciprocal or does not triangulate within relative tolerance
    """
    if len(set(currencies)) != len(currencies):
        raise ValueError(f"Duplicate currencies in rate table: {list(currencies)}")
    if not currencies:
        return

    bad = np.argwhere(~np.isfinite(rates) | (rates <= 0))
    if bad.size:
        i, j = bad[0]
        raise InvalidRateError(currencies[i], currencies[j], rates[i, j], "rate must be positive and finite")

    def fail(i: int, j: int, quoted: float, implied: float):
        logger.warning("FX table %s/%s=%r inconsistent with implied %r",
                       currencies[i], currencies[j], quoted, implied)
        raise InconsistentRateError(currencies[i], currencies[j], quoted, implied, tolerance)

    diagonal = np.diag(rates)
    off = np.flatnonzero(np.abs(diagonal - 1.0) > tolerance)
    if off.size:
        i = off[0]
        fail(i, i, diagonal[i], 1.0)

    # rate[i, j] * rate[j, i] == 1
    inverse = 1.0 / rates.T
    off = np.argwhere(np.abs(rates - inverse) > tolerance * np.maximum(rates, inverse))
    if off.size:
        i, j = off[0]
        fail(i, j, rates[i, j], inverse[i, j])

    # rate[i, j] * rate[j, k] == rate[i, k], indexed [i, j, k]
    implied = rates[:, :, np.newaxis] * rates[np.newaxis, :, :]
    quoted = np.broadcast_to(rates[:, np.newaxis, :], implied.shape)
    off = np.argwhere(np.abs(quoted - implied) > tolerance * np.maximum(quoted, implied))
    if off.size:
        i, j, k = off[0]
        fail(i, k, rates[i, k], implied[i, j, k])


class FxRateMatrix:
    """
    Immutable table of spot FX rates between a set of currencies.

    rate(a, b) is the number of units of b worth one unit of a. The table
    satisfies rate(a, b) * rate(b, a) == 1 and
    rate(a, b) * rate(b, c) == rate(a, c) to floating-point accuracy.

    Instances are normally created by FxRateMatrixBuilder.build(); use
    FxRateMatrix.builder() or FxRateMatrix.of(). A table passed directly
    is checked for positivity, reciprocity and triangulation within
    tolerance.
    """

    def __init__(
        self,
        currencies: Sequence[str],
        rates: np.ndarray,
        quotes: Optional[Mapping[CurrencyPair, float]] = None,
        tolerance: float = DEFAULT_FX_TOLERANCE
    ):
        currencies = tuple(normalize_currency(c) for c in currencies)
        rates = np.array(rates, dtype=np.float64)
        n = len(currencies)
        if rates.shape != (n, n):
            raise ValueError(f"Rate table must be {n}x{n}, got {rates.shape}")
        _check_table(currencies, rates, tolerance)
        rates.flags.writeable = False

        self._currencies = currencies
        self._index = {c: i for i, c in enumerate(self._currencies)}
        self._rates = rates
        self._quotes = dict(quotes or {})
        self._tolerance = tolerance

    @classmethod
    def builder(cls, tolerance: float = DEFAULT_FX_TOLERANCE) -> FxRateMatrixBuilder:
        return FxRateMatrixBuilder(tolerance=tolerance)

    @classmethod
    def empty(cls) -> "FxRateMatrix":
        return cls(currencies=(), rates=np.zeros((0, 0)))

    @classmethod
    def of(cls, ccy_a: str, ccy_b: str, rate: float) -> "FxRateMatrix":
        """Matrix holding a single pair."""
        return cls.builder().add_rate(ccy_a, ccy_b, rate).build()

    @property
    def currencies(self) -> Tuple[str, ...]:
        """Currencies in registration order."""
        return self._currencies

    @property
    def quotes(self) -> Dict[CurrencyPair, float]:
        """Copy of the quotes the matrix was built from."""
        return dict(self._quotes)

    @property
    def tolerance(self) -> float:
        return self._tolerance

    def _position(self, ccy: str) -> int:
        try:
            return self._index[normalize_currency(ccy)]
        except KeyError:
            raise UnknownCurrencyError(normalize_currency(ccy), self._currencies) from None

    def contains(self, ccy: str) -> bool:
        return normalize_currency(ccy) in self._index

    def contains_pair(self, ccy_a: str, ccy_b: str) -> bool:
        return self.contains(ccy_a) and self.contains(ccy_b)

    def rate(self, ccy_a: str, ccy_b: str) -> float:
        """
        Units of ccy_b per unit of ccy_a.

        Same-currency lookups return 1.0 only for registered currencies;
        rate("JPY", "JPY") on a matrix without JPY raises rather than
        short-circuiting to the identity, so a missing currency is never
        hidden.

        Raises:
            UnknownCurrencyError: If either currency is not in the matrix,
                including when ccy_a == ccy_b
        """
        i = self._position(ccy_a)
        j = self._position(ccy_b)
        if i == j:
            return 1.0
        return float(self._rates[i, j])

    def convert(self, amount: float, from_ccy: str, to_ccy: str) -> float:
        """Convert an amount in from_ccy into to_ccy."""
        return amount * self.rate(from_ccy, to_ccy)

    def to_builder(self) -> FxRateMatrixBuilder:
        """
        Builder pre-loaded with this matrix's currencies and quotes.

        A matrix created directly from a rate table has no quotes; its
        builder quotes every currency against the first one instead.
        """
        builder = FxRateMatrixBuilder(tolerance=self._tolerance)
        for ccy in self._currencies:
            builder.add_currency(ccy)
        quotes = self._quotes
        if not quotes and len(self._currencies) > 1:
            first = self._currencies[0]
            quotes = {(c, first): self.rate(c, first) for c in self._currencies[1:]}
        for (a, b), rate in quotes.items():
            builder.add_rate(a, b, rate)
        return builder

    def with_rate(self, ccy_a: str, ccy_b: str, rate: float) -> "FxRateMatrix":
        """New matrix with one rate overridden, all cross rates re-derived."""
        return self.with_rates({(ccy_a, ccy_b): rate})

    def with_rates(
        self,
        rates: Mapping[Union[str, CurrencyPair], float],
        tolerance: Optional[float] = None
    ) -> "FxRateMatrix":
        """
        New matrix where the given rates win over this matrix's quotes.

        Any pair may be overridden, including one whose rate is currently
        implied. This matrix's quotes are kept, in order, only where they
        link currencies the new rates leave unconnected; the rest are
        dropped and re-derived.

        Args:
            rates: Quotes keyed by pair ("EUR/USD" or ("EUR", "USD"))
            tolerance: Consistency tolerance of the result, defaults to this
                matrix's tolerance

        Raises:
            InvalidRateError: If a new rate is invalid
            InconsistentRateError: If the new rates disagree with each other
        """
        builder = FxRateMatrixBuilder(tolerance=self._tolerance if tolerance is None else tolerance)
        for ccy in self._currencies:
            builder.add_currency(ccy)
        builder.add_rates(rates)
        for (a, b), rate in self.to_builder().quotes.items():
            if not builder.linked(a, b):
                builder.add_rate(a, b, rate)
            else:
                logger.debug("FX quote %s/%s superseded by override", a, b)
        return builder.build()

    def merge(self, other: "FxRateMatrix") -> "FxRateMatrix":
        """
        Union of two matrices sharing at least one currency.

        Rates of currencies present in this matrix are kept; currencies only
        in other are linked in through the first shared currency.

        Raises:
            DisconnectedCurrencyError: If the matrices share no currency
        """
        if not other._currencies:
            return self
        if not self._currencies:
            return other

        shared = [c for c in other._currencies if c in self._index]
        if not shared:
            raise DisconnectedCurrencyError([self._currencies, other._currencies])

        anchor = shared[0]
        builder = self.to_builder()
        for ccy in other._currencies:
            if ccy not in self._index:
                builder.add_rate(ccy, anchor, other.rate(ccy, anchor))
        return builder.build()

    def rates_table(self) -> pd.DataFrame:
        """Full rate table; row = from currency, column = to currency."""
        return pd.DataFrame(
            np.array(self._rates),
            index=pd.Index(self._currencies, name="from"),
            columns=pd.Index(self._currencies, name="to"),
        )

    def __contains__(self, ccy: str) -> bool:
        return self.contains(ccy)

    def __len__(self) -> int:
        return len(self._currencies)

    def __iter__(self) -> Iterator[str]:
        return iter(self._currencies)

    def __eq__(self, other) -> bool:
        if not isinstance(other, FxRateMatrix):
            return NotImplemented
        return (
            self._currencies == other._currencies
            and np.array_equal(self._rates, other._rates)
        )

    def __hash__(self) -> int:
        return hash((self._currencies, self._rates.tobytes()))

    def __repr__(self) -> str:
        return f"FxRateMatrix(currencies={list(self._currencies)})"


__all__ = [
    "CurrencyPair",
    "FxRateMatrix",
    "FxRateMatrixBuilder",
    "normalize_currency",
    "parse_pair",
]
