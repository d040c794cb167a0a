"""
SiteChat Chat Orchestrator

LangGraph state machine for one chat turn:

    retrieve_context -> build_prompt -> prepare_tools -> await_model
        -> (execute_tool) -> END

- Retrieval is best-effort: any failure means "no context".
- A missing assistant configuration aborts the turn.
- ``select_from_table`` is offered only when the project has a database
  connection and a non-empty allowlist.
- Only the first tool call of a model response is honored, and there is a
  single tool round: the query result is the answer.
"""

import json
import logging
import time
from enum import StrEnum
from typing import Any, TypedDict

from langgraph.graph import END, StateGraph

from sitechat.config import LLMSettings
from sitechat.connectors import ConnectorError
from sitechat.knowledge.embeddings import EmbeddingClient
from sitechat.knowledge.store import KnowledgeStore
from sitechat.llm.base import BaseLLMProvider
from sitechat.llm.factory import LLMProviderFactory
from sitechat.llm.models import LLMMessage, LLMRequest, ToolCall, ToolDefinition
from sitechat.models.project import AssistantConfig
from sitechat.rag.prompt import build_system_prompt
from sitechat.storage.projects import ProjectStore
from sitechat.tools.allowlist import ColumnAllowlist
from sitechat.tools.definitions import SELECT_TOOL_NAME, build_select_tool
from sitechat.tools.executor import SafeQueryExecutor

logger = logging.getLogger(__name__)

TABLE_NOT_ALLOWED = "Error: Table not allowed."
COLUMN_NOT_ALLOWED = "Error: Column not allowed."
INVALID_TOOL_ARGUMENTS = "Error: Invalid tool arguments."


class CredentialRequired(Exception):
    """The chat turn carried no provider credential."""

    pass


class ProjectNotConfigured(Exception):
    """No assistant configuration exists for the project."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not configured: {project_id}")


class ChatPhase(StrEnum):
    IDLE = "idle"
    RETRIEVING_CONTEXT = "retrieving_context"
    BUILDING_PROMPT = "building_prompt"
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOL = "executing_tool"
    DONE = "done"


# ============================================================================
# Chat State Schema
# ============================================================================


class ChatState(TypedDict, total=False):
    """State of one chat turn as it moves through the graph."""

    # Input
    project_id: str
    text: str
    credential: str

    # Retrieval
    context_chunks: list[str]
    retrieval_error: str | None

    # Prompt
    assistant_config: AssistantConfig | None
    system_prompt: str | None

    # Tooling
    connection_uri: str | None
    allowlist: dict[str, list[str]]
    tools: list[ToolDefinition]

    # Model output
    model_content: str
    tool_call: ToolCall | None
    discarded_tool_calls: int

    # Result
    answer: str | None
    tool_used: bool
    tool_rows: int | None

    # Metadata
    phase: ChatPhase
    phase_timings: dict[str, float]
    llm_calls: int


# ============================================================================
# Chat Orchestrator
# ============================================================================


class ChatOrchestrator:
    """
    Runs a chat turn against a project's knowledge and database tool.

    All collaborators are injected; providers are built per turn from the
    request credential through ``provider_factory``.

    Usage:
        orchestrator = ChatOrchestrator(
            project_store, allowlist, knowledge_store, executor, settings.llm
        )
        answer = await orchestrator.answer("proj_1", "Who founded the company?", api_key)
    """

    def __init__(
        self,
        project_store: ProjectStore,
        allowlist: ColumnAllowlist,
        knowledge_store: KnowledgeStore,
        executor: SafeQueryExecutor,
        llm_settings: LLMSettings,
        match_threshold: float = 0.7,
        match_count: int = 5,
        provider_factory: type[LLMProviderFactory] = LLMProviderFactory,
    ):
        self.project_store = project_store
        self.allowlist = allowlist
        self.knowledge_store = knowledge_store
        self.executor = executor
        self.llm_settings = llm_settings
        self.match_threshold = match_threshold
        self.match_count = match_count
        self.provider_factory = provider_factory

        self.graph = self._build_graph()

    def _build_graph(self):
        """
        Build LangGraph state machine.

        Returns:
            Compiled LangGraph
        """
        workflow = StateGraph(ChatState)

        workflow.add_node("retrieve_context", self._retrieve_context)
        workflow.add_node("build_prompt", self._build_prompt)
        workflow.add_node("prepare_tools", self._prepare_tools)
        workflow.add_node("await_model", self._await_model)
        workflow.add_node("execute_tool", self._execute_tool)

        workflow.set_entry_point("retrieve_context")
        workflow.add_edge("retrieve_context", "build_prompt")
        workflow.add_edge("build_prompt", "prepare_tools")
        workflow.add_edge("prepare_tools", "await_model")
        workflow.add_conditional_edges(
            "await_model",
            self._should_execute_tool,
            {
                "tool": "execute_tool",
                "end": END,
            },
        )
        workflow.add_edge("execute_tool", END)

        return workflow.compile()

    # ========================================================================
    # Nodes
    # ========================================================================

    async def _retrieve_context(self, state: ChatState) -> ChatState:
        start_time = time.time()
        state["phase"] = ChatPhase.RETRIEVING_CONTEXT
        state["context_chunks"] = []
        state["retrieval_error"] = None

        try:
            provider = self.provider_factory.create_embedding_provider(
                self.llm_settings, state["credential"]
            )
            embedder = EmbeddingClient(provider, dimension=self.llm_settings.embedding_dimension)
            query_embedding = await embedder.embed(state["text"])
            state["context_chunks"] = await self.knowledge_store.search(
                state["project_id"],
                query_embedding,
                threshold=self.match_threshold,
                limit=self.match_count,
            )
        except Exception as e:
            logger.warning(
                f"Context retrieval failed, continuing without context: {e}",
                extra={"project_id": state["project_id"]},
            )
            state["retrieval_error"] = str(e)

        self._record_timing(state, "retrieve_context", start_time)
        logger.debug(f"Retrieved {len(state['context_chunks'])} context chunks")
        return state

    async def _build_prompt(self, state: ChatState) -> ChatState:
        start_time = time.time()
        state["phase"] = ChatPhase.BUILDING_PROMPT

        config = await self.project_store.get_assistant_config(state["project_id"])
        if config is None:
            logger.info("Project not configured", extra={"project_id": state["project_id"]})
            raise ProjectNotConfigured(state["project_id"])

        state["assistant_config"] = config
        state["system_prompt"] = build_system_prompt(config.system_prompt, state["context_chunks"])
        self._record_timing(state, "build_prompt", start_time)
        return state

    async def _prepare_tools(self, state: ChatState) -> ChatState:
        state["tools"] = []
        state["allowlist"] = {}
        state["connection_uri"] = None

        allowlist = await self.allowlist.get(state["project_id"])
        if not allowlist:
            return state

        connection = await self.project_store.get_db_connection(state["project_id"])
        if connection is None:
            return state

        state["allowlist"] = allowlist
        state["connection_uri"] = connection.uri.get_secret_value()
        state["tools"] = [build_select_tool(allowlist)]
        return state

    async def _await_model(self, state: ChatState) -> ChatState:
        start_time = time.time()
        state["phase"] = ChatPhase.AWAITING_MODEL

        provider: BaseLLMProvider = self.provider_factory.create_chat_provider(
            self.llm_settings, state["credential"]
        )
        response = await provider.generate(
            LLMRequest(
                messages=[
                    LLMMessage(role="system", content=state["system_prompt"]),
                    LLMMessage(role="user", content=state["text"]),
                ],
                tools=state["tools"],
            )
        )
        state["llm_calls"] = state.get("llm_calls", 0) + 1
        state["model_content"] = response.content

        # Single tool round: only the first call is honored.
        state["tool_call"] = response.tool_calls[0] if response.tool_calls else None
        state["discarded_tool_calls"] = max(len(response.tool_calls) - 1, 0)
        if state["discarded_tool_calls"]:
            logger.info(f"Discarding {state['discarded_tool_calls']} additional tool calls")

        state["answer"] = response.content
        self._record_timing(state, "await_model", start_time)
        return state

    async def _execute_tool(self, state: ChatState) -> ChatState:
        start_time = time.time()
        state["phase"] = ChatPhase.EXECUTING_TOOL
        state["tool_used"] = True
        call = state["tool_call"]
        allowlist = state["allowlist"]

        arguments = call.arguments
        where = arguments.get("where") if arguments is not None else None
        # Only a missing or null filter means "no filter".
        if arguments is None or (where is not None and not isinstance(where, dict)):
            logger.warning("Tool call with invalid arguments", extra={"tool": call.name})
            state["answer"] = INVALID_TOOL_ARGUMENTS
            return state

        table = arguments.get("table")
        if not isinstance(table, str) or table not in allowlist:
            logger.warning(
                f"Tool requested table outside allowlist: {table}",
                extra={"project_id": state["project_id"]},
            )
            state["answer"] = TABLE_NOT_ALLOWED
            return state

        where = where or {}
        disallowed = [column for column in where if column not in allowlist[table]]
        if disallowed:
            logger.warning(
                f"Tool filter on columns outside allowlist: {disallowed}",
                extra={"project_id": state["project_id"], "table": table},
            )
            state["answer"] = COLUMN_NOT_ALLOWED
            return state

        try:
            rows = await self.executor.select_where(
                state["connection_uri"], table, allowlist[table], where
            )
        except (ConnectorError, ValueError) as e:
            logger.warning(
                f"Tool query failed: {e}",
                extra={"project_id": state["project_id"], "table": table},
            )
            state["answer"] = f"Database Error: {e}"
            return state

        state["tool_rows"] = len(rows)
        state["answer"] = json.dumps(rows, indent=2, default=str)
        self._record_timing(state, "execute_tool", start_time)
        return state

    # ========================================================================
    # Routing
    # ========================================================================

    def _should_execute_tool(self, state: ChatState) -> str:
        call = state.get("tool_call")
        if call is not None and call.name == SELECT_TOOL_NAME and state.get("tools"):
            return "tool"
        return "end"

    @staticmethod
    def _record_timing(state: ChatState, phase: str, start_time: float) -> None:
        state.setdefault("phase_timings", {})[phase] = (time.time() - start_time) * 1000

    # ========================================================================
    # Public API
    # ========================================================================

    async def run(self, project_id: str, text: str, credential: str | None) -> ChatState:
        """
        Run one chat turn.

        Args:
            project_id: Project identifier
            text: User message
            credential: Provider API key for this turn

        Returns:
            Final chat state; ``state["answer"]`` holds the answer text

        Raises:
            CredentialRequired: If no credential was given (checked before any other work)
            ProjectNotConfigured: If the project has no assistant configuration
            LLMProviderError: If the chat completion call fails upstream
            VaultError: If the stored connection cannot be decrypted
        """
        if not credential or not credential.strip():
            raise CredentialRequired("A provider credential is required")

        initial_state: ChatState = {
            "project_id": project_id,
            "text": text,
            "credential": credential,
            "context_chunks": [],
            "retrieval_error": None,
            "assistant_config": None,
            "system_prompt": None,
            "connection_uri": None,
            "allowlist": {},
            "tools": [],
            "model_content": "",
            "tool_call": None,
            "discarded_tool_calls": 0,
            "answer": None,
            "tool_used": False,
            "tool_rows": None,
            "phase": ChatPhase.IDLE,
            "phase_timings": {},
            "llm_calls": 0,
        }

        logger.info("Starting chat turn", extra={"project_id": project_id})
        start_time = time.time()

        result = await self.graph.ainvoke(initial_state)
        result["phase"] = ChatPhase.DONE

        total_time = (time.time() - start_time) * 1000
        logger.info(
            f"Chat turn complete in {total_time:.1f}ms "
            f"(context={len(result.get('context_chunks', []))}, tool={result.get('tool_used', False)})",
            extra={"project_id": project_id},
        )
        return result

    async def answer(self, project_id: str, text: str, credential: str | None) -> str:
        """Run a chat turn and return only the answer text."""
        result: dict[str, Any] = await self.run(project_id, text, credential)
        return result.get("answer") or ""
