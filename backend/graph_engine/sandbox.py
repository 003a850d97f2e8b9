"""
Restricted evaluation of code-node scripts.

Scripts are compiled with RestrictedPython and run against an explicit set
of globals. Nothing from the host (imports, open, the graph) is reachable
unless it is listed in ``SCRIPT_CAPABILITIES``.
"""

from __future__ import annotations

import logging
import math
import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from RestrictedPython import compile_restricted, safe_builtins
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safer_getattr,
)
from RestrictedPython.PrintCollector import PrintCollector

logger = logging.getLogger(__name__)

SCRIPT_FILENAME = "<code node>"

# Pure helpers exposed to scripts in addition to RestrictedPython's safe builtins.
SCRIPT_CAPABILITIES: Dict[str, Any] = {
    'all': all,
    'any': any,
    'dict': dict,
    'enumerate': enumerate,
    'filter': filter,
    'list': list,
    'map': map,
    'max': max,
    'min': min,
    'reversed': reversed,
    'set': set,
    'sum': sum,
    'math': math,
}

INPLACE_OPERATORS: Dict[str, Callable[[Any, Any], Any]] = {
    '+=': operator.add,
    '-=': operator.sub,
    '*=': operator.mul,
    '/=': operator.truediv,
    '//=': operator.floordiv,
    '%=': operator.mod,
    '**=': operator.pow,
    '<<=': operator.lshift,
    '>>=': operator.rshift,
    '&=': operator.and_,
    '|=': operator.or_,
    '^=': operator.xor,
}


def _inplacevar(op: str, target: Any, value: Any) -> Any:
    try:
        return INPLACE_OPERATORS[op](target, value)
    except KeyError:
        raise SyntaxError(f"Unsupported in-place operator: {op}") from None


@dataclass
class ScriptResult:
    output: str


class ScriptSandbox:
    """Compiles and runs one script per call with fresh globals."""

    def __init__(self, capabilities: Dict[str, Any] | None = None):
        self.capabilities = dict(SCRIPT_CAPABILITIES if capabilities is None else capabilities)

    def run(self, source: str) -> ScriptResult:
        """
        Execute ``source``.

        SyntaxError is raised for code RestrictedPython refuses to compile;
        any exception raised by the script propagates unchanged.
        """
        byte_code = compile_restricted(source, filename=SCRIPT_FILENAME, mode='exec')
        collectors: List[PrintCollector] = []
        script_globals = self._build_globals(collectors)
        exec(byte_code, script_globals)
        output = ''.join(collector() for collector in collectors)
        return ScriptResult(output=output)

    def _build_globals(self, collectors: List[PrintCollector]) -> Dict[str, Any]:
        def print_factory(_getattr_=None):
            collector = PrintCollector(_getattr_)
            collectors.append(collector)
            return collector

        builtins = dict(safe_builtins)
        builtins.update(self.capabilities)
        return {
            '__builtins__': builtins,
            '__name__': 'code_node',
            '_print_': print_factory,
            '_getattr_': safer_getattr,
            '_getitem_': default_guarded_getitem,
            '_getiter_': default_guarded_getiter,
            '_iter_unpack_sequence_': guarded_iter_unpack_sequence,
            '_unpack_sequence_': guarded_unpack_sequence,
            '_write_': full_write_guard,
            '_inplacevar_': _inplacevar,
        }
