"""
Flow Runner - executes a flow graph in dependency order.

Architecture:
- Scheduler: Kahn's algorithm, declaration order breaks ties
- NodeExecutorRegistry: one executor per node kind
- FlowRunner: validates, schedules, then runs nodes one at a time and writes
  results back onto the graph

A cycle aborts the whole run before any node executes. A failing node only
records its own lastError; the remaining nodes still run.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import requests

from config import HTTP_TIMEOUT_SECONDS, MAX_CONCURRENT_NODES
from graph_engine.context import FlowExecutionContext
from graph_engine.graph_model import GraphModel
from graph_engine.node_executors import NodeExecutorRegistry
from graph_engine.planner import Scheduler
from graph_engine.sandbox import ScriptSandbox
from utils.async_helpers import gather_with_concurrency
from utils.logging_utils import compact_json

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    order: List[str]
    executed: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    cancelled: bool = False
    elapsed: float = 0.0

    def to_dict(self) -> Dict:
        return {
            'order': self.order,
            'executed': self.executed,
            'failed': self.failed,
            'cancelled': self.cancelled,
            'elapsed': round(self.elapsed, 3),
        }


class FlowRunner:
    """
    Drives Scheduler and node executors over a GraphModel.

    Nodes run sequentially by default. With ``concurrent=True`` each
    dependency wave runs in parallel and is joined before the next wave.
    """

    def __init__(
        self,
        http_session=None,
        http_timeout: float = HTTP_TIMEOUT_SECONDS,
        concurrent: bool = False,
        registry: Optional[NodeExecutorRegistry] = None,
        scheduler: Optional[Scheduler] = None,
        sandbox: Optional[ScriptSandbox] = None,
    ):
        self.http_session = http_session or requests.Session()
        self.http_timeout = http_timeout
        self.concurrent = concurrent
        self.registry = registry or NodeExecutorRegistry()
        self.scheduler = scheduler or Scheduler()
        self.sandbox = sandbox or ScriptSandbox()
        self.should_cancel = False
        self.last_report: Optional[RunReport] = None

    async def run(self, graph: GraphModel) -> GraphModel:
        """
        Execute every node of ``graph`` and return it with results written back.

        Raises StructuralError for an invalid graph and CycleDetected when
        no order exists; in both cases no node is executed.
        """
        graph.validate()
        self.should_cancel = False
        start = time.time()

        if self.concurrent:
            waves = self.scheduler.levels(graph)
            order = [node_id for wave in waves for node_id in wave]
        else:
            order = self.scheduler.order(graph)
            waves = [[node_id] for node_id in order]

        logger.info("Running flow with %d nodes, order: %s", len(order), order)
        ctx = FlowExecutionContext(
            graph=graph,
            order=order,
            http_session=self.http_session,
            http_timeout=self.http_timeout,
            sandbox=self.sandbox,
        )
        report = RunReport(order=order)

        for wave in waves:
            if self.should_cancel:
                ctx.should_cancel = True
                report.cancelled = True
                logger.info("Flow run cancelled after %d nodes", len(ctx.executed))
                break
            if len(wave) == 1:
                await self._execute_node(wave[0], ctx)
            else:
                await gather_with_concurrency(
                    MAX_CONCURRENT_NODES, *(self._execute_node(node_id, ctx) for node_id in wave)
                )

        report.executed = list(ctx.executed)
        report.failed = dict(ctx.errors)
        report.elapsed = time.time() - start
        self.last_report = report

        graph.notify_changed()
        logger.info("Flow run finished: %s", compact_json(report.to_dict()))
        return graph

    async def _execute_node(self, node_id: str, ctx: FlowExecutionContext) -> None:
        node = ctx.graph.get_node(node_id)
        executor = self.registry.get(node.kind)
        logger.debug("Executing node: %s (%s)", node.type, node.id)
        try:
            data = await executor.run(node, ctx)
        except Exception as e:
            # Executor bugs are still confined to the node that hit them
            logger.exception("Unexpected failure in node %s", node.id)
            message = f"internal error: {type(e).__name__}: {e}"
            ctx.record_failure(node.id, message)
            data = node.data
            if hasattr(data, 'last_error'):
                data.last_error = message
        ctx.graph.record_result(node.id, data, notify=False)
        ctx.executed.append(node.id)

    def run_sync(self, graph: GraphModel) -> GraphModel:
        return asyncio.run(self.run(graph))

    def cancel(self):
        """Signal cancellation; checked between node executions."""
        self.should_cancel = True
