"""
Skip rules deciding which URLs are never requested.
"""

import inspect
import logging
import re
from typing import Awaitable, Callable, List, Pattern, Sequence, Union

from ..utils.config import ConfigError

SkipPredicate = Callable[[str], Union[bool, Awaitable[bool]]]
SkipRules = Union[Sequence[str], SkipPredicate, None]


class SkipFilter:
    """
    Policy object for excluding URLs before any network request.

    Accepts either a list of regular expressions, each searched anywhere in the
    full URL, or a predicate receiving the URL and returning a bool (or an
    awaitable of one).
    """

    def __init__(self, rules: SkipRules = None):
        self.logger = logging.getLogger(__name__)
        self.predicate = None
        self.patterns: List[Pattern] = []

        if callable(rules):
            self.predicate = rules
        elif rules is not None:
            if isinstance(rules, str):
                rules = [rules]
            for raw in rules:
                try:
                    self.patterns.append(re.compile(raw))
                except re.error as e:
                    raise ConfigError(f"Invalid skip pattern {raw!r}: {e}") from e

    async def should_skip(self, url: str) -> bool:
        """Check if the URL matches the configured skip rules."""
        if self.predicate is not None:
            decision = self.predicate(url)
            if inspect.isawaitable(decision):
                decision = await decision
            return bool(decision)

        for pattern in self.patterns:
            if pattern.search(url):
                self.logger.debug(f"Skipping {url} (matched {pattern.pattern!r})")
                return True
        return False
