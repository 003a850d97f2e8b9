"""
Registered node executors for the flow runtime.
"""

from __future__ import annotations

import logging
import math
import operator
from dataclasses import replace
from typing import Callable, Dict, Optional

import requests

from utils.async_helpers import run_in_thread

from .context import FlowExecutionContext
from .errors import NodeExecutionError
from .schema import (
    ARITHMETIC_OPERATORS,
    HTTP_METHODS,
    ArithmeticData,
    CodeData,
    HttpData,
    Node,
    NodeData,
    NodeType,
)

logger = logging.getLogger(__name__)

ARITHMETIC_DISPATCH: Dict[str, Callable] = dict(zip(
    ARITHMETIC_OPERATORS,
    (operator.add, operator.sub, operator.mul, operator.truediv),
))


class BaseNodeExecutor:
    """
    Base class for all node executors.

    ``execute`` returns new node data and raises NodeExecutionError on
    failure. ``run`` turns that failure into ``lastError`` so a single node
    never stops the flow.
    """
    node_type: NodeType

    async def run(self, node: Node, ctx: FlowExecutionContext) -> NodeData:
        try:
            return await self.execute(node.data, ctx)
        except NodeExecutionError as e:
            logger.warning("Node %s (%s) failed [%s]: %s", node.id, node.type, e.kind, e)
            ctx.record_failure(node.id, str(e))
            return replace(node.data, last_error=str(e))

    async def execute(self, data: NodeData, ctx: FlowExecutionContext) -> NodeData:
        raise NotImplementedError


class CodeNodeExecutor(BaseNodeExecutor):
    node_type = NodeType.CODE

    async def execute(self, data: CodeData, ctx: FlowExecutionContext) -> CodeData:
        try:
            result = ctx.sandbox.run(data.source)
        except Exception as e:
            # Scripts may raise anything; the message is the node's result.
            raise NodeExecutionError(_describe_script_error(e), NodeExecutionError.SCRIPT) from e
        return replace(data, last_error=None, output=result.output)


def _describe_script_error(error: Exception) -> str:
    if isinstance(error, SyntaxError) and error.args and isinstance(error.args[0], (list, tuple)):
        # RestrictedPython reports every compile problem at once
        return f"SyntaxError: {'; '.join(str(msg) for msg in error.args[0])}"
    message = str(error)
    return f"{type(error).__name__}: {message}" if message else type(error).__name__


class ArithmeticNodeExecutor(BaseNodeExecutor):
    node_type = NodeType.ARITHMETIC

    async def execute(self, data: ArithmeticData, ctx: FlowExecutionContext) -> ArithmeticData:
        return replace(data, result=self.evaluate(data), last_error=None)

    @staticmethod
    def evaluate(data: ArithmeticData):
        func = ARITHMETIC_DISPATCH.get(data.operator)
        if func is None:
            raise NodeExecutionError(
                f"unsupported operator: {data.operator}", NodeExecutionError.ARITHMETIC
            )
        try:
            value = func(data.operand_a, data.operand_b)
        except ZeroDivisionError:
            raise NodeExecutionError("division by zero", NodeExecutionError.ARITHMETIC) from None
        except OverflowError:
            raise NodeExecutionError("non-finite result", NodeExecutionError.ARITHMETIC) from None
        if isinstance(value, float) and not math.isfinite(value):
            raise NodeExecutionError("non-finite result", NodeExecutionError.ARITHMETIC)
        return value


class HttpNodeExecutor(BaseNodeExecutor):
    node_type = NodeType.HTTP

    async def execute(self, data: HttpData, ctx: FlowExecutionContext) -> HttpData:
        if data.method not in HTTP_METHODS:
            raise NodeExecutionError(
                f"unsupported method: {data.method}", NodeExecutionError.NETWORK
            )
        if not data.url:
            raise NodeExecutionError("network error: url is empty", NodeExecutionError.NETWORK)

        logger.debug("HTTP %s %s (timeout %.1fs)", data.method, data.url, ctx.http_timeout)
        try:
            response = await run_in_thread(
                ctx.http_session.request, data.method, data.url, timeout=ctx.http_timeout
            )
            body = response.text
        except requests.Timeout:
            raise NodeExecutionError(
                f"timeout: no response from {data.url} within {ctx.http_timeout:g}s",
                NodeExecutionError.TIMEOUT,
            ) from None
        except requests.RequestException as e:
            raise NodeExecutionError(f"network error: {e}", NodeExecutionError.NETWORK) from e

        return replace(data, response=body, last_error=None)


class DefaultNodeExecutor(BaseNodeExecutor):
    """Nodes without executable semantics pass through unchanged."""
    node_type = NodeType.DEFAULT

    async def run(self, node: Node, ctx: FlowExecutionContext) -> NodeData:
        return node.data


class NodeExecutorRegistry:
    """
    One executor per node kind.

    Construction fails if a NodeType member has no executor, so adding a
    kind without an executor is caught at startup rather than silently
    skipped at run time.
    """

    def __init__(self, overrides: Optional[Dict[NodeType, BaseNodeExecutor]] = None):
        self._executors: Dict[NodeType, BaseNodeExecutor] = {
            cls.node_type: cls()
            for cls in (
                CodeNodeExecutor,
                ArithmeticNodeExecutor,
                HttpNodeExecutor,
                DefaultNodeExecutor,
            )
        }
        if overrides:
            self._executors.update(overrides)
        missing = [kind.value for kind in NodeType if kind not in self._executors]
        if missing:
            raise RuntimeError(f"No executor registered for node types: {', '.join(missing)}")

    def get(self, kind: NodeType) -> BaseNodeExecutor:
        return self._executors[kind]
