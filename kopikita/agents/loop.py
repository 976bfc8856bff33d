"""
Agent Loop

LangGraph state machine that drives one tool-calling agent run:

    model ──(tool calls)──> tools ──> model ──(plain answer)──> END

The model node enforces the step budget before every invocation, so a run
never makes more than ``max_steps`` model calls. The whole graph is raced
against an optional wall-clock timeout. Every terminal condition is returned
as an AgentRunStatus on the result; nothing is raised for step exhaustion,
timeouts or model endpoint failures.
"""

import asyncio
import logging
import time
from collections.abc import Sequence
from typing import Any, TypedDict

from langgraph.errors import GraphRecursionError
from langgraph.graph import END, StateGraph
from pydantic import BaseModel, ConfigDict, Field, field_validator

from kopikita.agents.output import extract_final_text
from kopikita.llm.base import BaseLLMProvider
from kopikita.llm.models import LLMMessage, LLMRequest
from kopikita.models.agent import AgentRunStatus, LLMError
from kopikita.tools.base import Tool
from kopikita.tools.executor import ToolExecutor
from kopikita.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


# ============================================================================
# Run Configuration and Result
# ============================================================================


class AgentRunConfig(BaseModel):
    """Immutable settings of one agent: prompt, tools and bounds."""

    system_prompt: str = Field(..., min_length=1)
    tools: tuple[Tool, ...] = Field(default=())
    max_steps: int = Field(..., ge=1, description="Maximum model invocations per run")
    timeout_seconds: float | None = Field(None, gt=0, description="Wall-clock bound per run")
    temperature: float | None = Field(None, ge=0.0, le=2.0)
    name: str = Field(default="agent")

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @field_validator("tools", mode="before")
    @classmethod
    def to_tuple(cls, v: Any) -> tuple:
        return tuple(v or ())


class AgentRunResult(BaseModel):
    """Terminal state of one agent run."""

    status: AgentRunStatus
    messages: list[LLMMessage] = Field(default_factory=list)
    steps: int = Field(default=0, description="Model invocations made")
    tool_calls: int = Field(default=0, description="Tool calls executed")
    detail: str | None = Field(None, description="Why the run stopped, when not done")
    final_text: str = Field(default="", description="Final answer text (status done only)")
    duration_ms: float = Field(default=0.0)

    @property
    def ok(self) -> bool:
        return self.status == AgentRunStatus.DONE


class AgentState(TypedDict, total=False):
    """State carried between graph nodes."""

    messages: list[LLMMessage]
    steps: int
    tool_calls: int
    status: AgentRunStatus | None
    detail: str | None


# ============================================================================
# Agent Loop
# ============================================================================


class AgentLoop:
    """
    Bounded tool-calling loop between a model endpoint and a set of tools.

    Usage:
        loop = AgentLoop(provider, AgentRunConfig(
            system_prompt="You are a data analyst...",
            tools=[execute_sql],
            max_steps=8,
            timeout_seconds=45,
        ))
        result = await loop.run("Berapa total penjualan minggu ini?")
        if result.ok:
            print(result.final_text)
    """

    def __init__(self, provider: BaseLLMProvider, config: AgentRunConfig):
        self.provider = provider
        self.config = config
        self.registry = ToolRegistry(config.tools)
        self.executor = ToolExecutor(self.registry)
        self._tool_specs = self.registry.to_openai()
        self.graph = self._build_graph()

    def _build_graph(self):
        workflow = StateGraph(AgentState)

        workflow.add_node("model", self._call_model)
        workflow.add_node("tools", self._run_tools)

        workflow.set_entry_point("model")
        workflow.add_conditional_edges(
            "model",
            self._should_run_tools,
            {
                "tools": "tools",
                "end": END,
            },
        )
        workflow.add_edge("tools", "model")

        return workflow.compile()

    # ========================================================================
    # Graph Nodes
    # ========================================================================

    async def _call_model(self, state: AgentState) -> dict[str, Any]:
        steps = state.get("steps", 0)
        if steps >= self.config.max_steps:
            logger.warning(
                f"[{self.config.name}] Step limit reached after {steps} model calls",
                extra={"agent": self.config.name, "max_steps": self.config.max_steps},
            )
            return {
                "status": AgentRunStatus.STEP_LIMIT,
                "detail": f"Agent exceeded {self.config.max_steps} steps",
            }

        request = LLMRequest(
            messages=state["messages"],
            tools=self._tool_specs,
            temperature=self.config.temperature,
        )
        try:
            response = await self.provider.generate(request)
        except LLMError as e:
            logger.error(f"[{self.config.name}] Model endpoint failed: {e.message}")
            return {"status": AgentRunStatus.UPSTREAM_ERROR, "detail": e.message}

        update: dict[str, Any] = {
            "messages": [*state["messages"], response.to_message()],
            "steps": steps + 1,
        }
        if not response.tool_calls:
            update["status"] = AgentRunStatus.DONE
        return update

    async def _run_tools(self, state: AgentState) -> dict[str, Any]:
        messages = list(state["messages"])
        calls = messages[-1].tool_calls

        # One at a time: each call carries exactly one statement
        for call in calls:
            result = await self.executor.execute(call)
            messages.append(
                LLMMessage(role="tool", content=result.content, tool_call_id=result.call_id)
            )

        return {"messages": messages, "tool_calls": state.get("tool_calls", 0) + len(calls)}

    def _should_run_tools(self, state: AgentState) -> str:
        if state.get("status") is not None:
            return "end"
        return "tools" if state["messages"][-1].tool_calls else "end"

    # ========================================================================
    # Public API
    # ========================================================================

    async def run(
        self,
        user_message: str | LLMMessage,
        history: Sequence[LLMMessage] | None = None,
    ) -> AgentRunResult:
        """
        Run the loop until a final answer or a bound.

        Args:
            user_message: The new user turn
            history: Earlier user/assistant turns (oldest first, no system messages)

        Returns:
            AgentRunResult; ``final_text`` is set when status is ``done``

        Raises:
            ValueError: If history contains a system message
        """
        history = list(history or [])
        if any(message.role == "system" for message in history):
            raise ValueError("History must not contain system messages")

        if isinstance(user_message, str):
            user_message = LLMMessage(role="user", content=user_message)

        initial_state: AgentState = {
            "messages": [
                LLMMessage(role="system", content=self.config.system_prompt),
                *history,
                user_message,
            ],
            "steps": 0,
            "tool_calls": 0,
            "status": None,
            "detail": None,
        }
        latest: dict[str, Any] = dict(initial_state)

        async def drive() -> None:
            async for snapshot in self.graph.astream(
                initial_state,
                config={"recursion_limit": 2 * self.config.max_steps + 5},
                stream_mode="values",
            ):
                latest.update(snapshot)

        logger.info(
            f"[{self.config.name}] Agent run started",
            extra={
                "agent": self.config.name,
                "max_steps": self.config.max_steps,
                "timeout_seconds": self.config.timeout_seconds,
                "history": len(history),
            },
        )
        start_time = time.perf_counter()

        try:
            if self.config.timeout_seconds is not None:
                await asyncio.wait_for(drive(), timeout=self.config.timeout_seconds)
            else:
                await drive()
        except TimeoutError:
            logger.warning(
                f"[{self.config.name}] Agent run timed out after {self.config.timeout_seconds}s"
            )
            latest["status"] = AgentRunStatus.TIMEOUT
            latest["detail"] = f"Agent timed out after {self.config.timeout_seconds}s"
        except GraphRecursionError as e:
            logger.warning(f"[{self.config.name}] Graph recursion limit hit: {e}")
            latest["status"] = AgentRunStatus.STEP_LIMIT
            latest["detail"] = f"Agent exceeded {self.config.max_steps} steps"

        status = latest.get("status") or AgentRunStatus.STEP_LIMIT
        messages = latest["messages"]
        result = AgentRunResult(
            status=status,
            messages=messages,
            steps=latest.get("steps", 0),
            tool_calls=latest.get("tool_calls", 0),
            detail=latest.get("detail"),
            final_text=extract_final_text(messages) if status == AgentRunStatus.DONE else "",
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )

        logger.info(
            f"[{self.config.name}] Agent run finished: {result.status} "
            f"({result.steps} steps, {result.tool_calls} tool calls, {result.duration_ms:.1f}ms)",
            extra={"agent": self.config.name, "status": str(result.status)},
        )
        return result
