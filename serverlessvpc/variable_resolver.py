"""
Variable Resolver Module

Resolves serverless-style variables (${self:...}, ${env:...}, ${opt:...})
in a parsed service definition.
"""

import logging
import os
import re
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

# ${source:name} with an optional quoted fallback: ${opt:stage, 'dev'}
VARIABLE_PATTERN = re.compile(
    r"\$\{\s*(self|env|opt):([\w.\-]+)\s*(?:,\s*(?:'([^']*)'|\"([^\"]*)\"))?\s*\}"
)

MAX_DEPTH = 10


class VariableResolver:
    """Resolves variables against the service itself, the environment and CLI options."""

    def __init__(
        self,
        service: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """Initialize the resolver.

        Args:
            service: The parsed (unresolved) service definition, used for ${self:...}
            options: CLI options such as stage and region, used for ${opt:...}
            environ: Environment for ${env:...}; defaults to os.environ
        """
        self.service = service
        self._options: Dict[str, Any] = {k: v for k, v in (options or {}).items() if v is not None}
        self._environ = os.environ if environ is None else environ

    def get_self(self, path: str) -> Optional[Any]:
        """Get a value from the service by dotted path, e.g. ``custom.vpc.vpcName``.

        Returns:
            The value, or None if any segment is missing
        """
        current: Any = self.service
        for segment in path.split("."):
            if isinstance(current, Mapping):
                current = current.get(segment)
            elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
                current = current[int(segment)]
            else:
                return None
            if current is None:
                return None
        return current

    def get_env(self, name: str) -> Optional[str]:
        return self._environ.get(name)

    def get_option(self, name: str) -> Optional[Any]:
        return self._options.get(name)

    def _lookup(self, match: re.Match) -> Optional[Any]:
        source, name, single_default, double_default = match.groups()

        if source == "self":
            resolved = self.get_self(name)
        elif source == "env":
            resolved = self.get_env(name)
        else:  # opt
            resolved = self.get_option(name)

        if resolved is None:
            return single_default if single_default is not None else double_default
        return resolved

    def resolve(self, value: Any, _depth: int = 0) -> Any:
        """Resolve variables in a value.

        Walks dicts and lists. A string that is exactly one variable takes the
        referenced value as-is (so it may become a list); variables embedded in
        longer strings are substituted as text.

        Args:
            value: The value to resolve

        Returns:
            The resolved value, with unresolvable variables left untouched
        """
        if value is None:
            return None

        if isinstance(value, Mapping):
            return {key: self.resolve(item, _depth) for key, item in value.items()}

        if isinstance(value, list):
            return [self.resolve(item, _depth) for item in value]

        if not isinstance(value, str):
            return value

        if _depth >= MAX_DEPTH:
            logger.warning("Variable nesting too deep, leaving %r unresolved", value)
            return value

        whole = VARIABLE_PATTERN.fullmatch(value)
        if whole:
            resolved = self._lookup(whole)
            if resolved is None:
                logger.debug("Could not resolve %s", value)
                return value
            return self.resolve(resolved, _depth + 1)

        def replace_variable(match: re.Match) -> str:
            resolved = self._lookup(match)
            if resolved is not None:
                return str(self.resolve(resolved, _depth + 1))
            else:
                # Keep original if not resolvable
                return match.group(0)

        return VARIABLE_PATTERN.sub(replace_variable, value)


def resolve_all(
    service: Mapping[str, Any],
    options: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Return a copy of ``service`` with every variable resolved."""
    return VariableResolver(service, options=options, environ=environ).resolve(service)
