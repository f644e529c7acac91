# The module manages tasks and the MCP servers configured on them.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.1.0

from uuid import uuid4
from typing import Awaitable, Callable, Dict, List, Optional
from mcp_chat.core.errors import DuplicateServerError, TaskNotFoundError
from mcp_chat.models.api_models import ToolDescriptor, ValidateServerResponse
from mcp_chat.models.common import MCPServerConfig, ReasoningType, RequireApproval, Task
from mcp_chat.utils.logger import console

DEFAULT_TASK_ID = "default"

ChatTaskListener = Callable[[Optional[Task], Optional[Task]], None]
ServerValidator = Callable[[str, str], Awaitable[ValidateServerResponse]]


class TaskRegistry:
    """
    Owns every Task and MCPServerConfig.

    One task is active for chat and one (possibly different) is active for
    configuration. Consumers that must react to the chat-active task changing,
    such as a conversation, subscribe with `subscribe()`; they never mutate tasks.
    """

    def __init__(self, with_default_task: bool = True):
        self._tasks: List[Task] = []
        self._listeners: List[ChatTaskListener] = []
        self.chat_active_task_id: Optional[str] = None
        self.config_active_task_id: Optional[str] = None
        if with_default_task:
            self._tasks.append(Task(
                id=DEFAULT_TASK_ID,
                name="Store(MCP)",
                model="gpt-4.1-mini",
                reasoning_type="Intelligence",
            ))
            self.chat_active_task_id = DEFAULT_TASK_ID
            self.config_active_task_id = DEFAULT_TASK_ID

    @property
    def tasks(self) -> List[Task]:
        return list(self._tasks)

    @property
    def chat_active_task(self) -> Optional[Task]:
        return self.get_task(self.chat_active_task_id)

    @property
    def config_active_task(self) -> Optional[Task]:
        return self.get_task(self.config_active_task_id)

    def subscribe(self, listener: ChatTaskListener) -> Callable[[], None]:
        """Registers a chat-task listener and returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def get_task(self, task_id: Optional[str]) -> Optional[Task]:
        if task_id is None:
            return None
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def _require_task(self, task_id: str) -> Task:
        task = self.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def add_task(self, name: str, model: str, reasoning_type: Optional[ReasoningType] = None) -> Task:
        task = Task(id=f"task-{uuid4().hex[:8]}", name=name, model=model, reasoning_type=reasoning_type)
        self._tasks.append(task)
        console.info(f"Task '{task.name}' ({task.id}) added with model '{task.model}'.")
        if self.chat_active_task_id is None:
            self.set_chat_active_task(task.id)
        if self.config_active_task_id is None:
            self.config_active_task_id = task.id
        return task

    def remove_task(self, task_id: str):
        self._require_task(task_id)
        self._tasks = [task for task in self._tasks if task.id != task_id]
        fallback = self._tasks[0].id if self._tasks else None
        if self.config_active_task_id == task_id:
            self.config_active_task_id = fallback
        if self.chat_active_task_id == task_id:
            self.set_chat_active_task(fallback)
        console.info(f"Task '{task_id}' removed.")

    def update_task(self, task_id: str, name: Optional[str] = None, model: Optional[str] = None,
                    reasoning_type: Optional[ReasoningType] = None) -> Task:
        task = self._require_task(task_id)
        changes: Dict[str, object] = {}
        if name is not None:
            changes["name"] = name
        if model is not None:
            changes["model"] = model
        if reasoning_type is not None:
            changes["reasoning_type"] = reasoning_type
        updated = task.model_copy(update=changes)
        self._replace(updated)
        if task_id == self.chat_active_task_id and updated.model != task.model:
            # A continuation id from one model is not valid input to another.
            self._notify(task, updated)
        return updated

    def set_chat_active_task(self, task_id: Optional[str]):
        if task_id is not None:
            self._require_task(task_id)
        previous = self.chat_active_task
        if task_id == self.chat_active_task_id:
            return
        self.chat_active_task_id = task_id
        self._notify(previous, self.chat_active_task)

    def set_config_active_task(self, task_id: Optional[str]):
        if task_id is not None:
            self._require_task(task_id)
        self.config_active_task_id = task_id

    def add_server(self, task_id: str, server: MCPServerConfig) -> Task:
        task = self._require_task(task_id)
        if any(existing.label == server.label for existing in task.servers):
            raise DuplicateServerError(f"Server label '{server.label}' is already used in task '{task.name}'.")
        updated = task.model_copy(update={"servers": [*task.servers, server]})
        self._replace(updated)
        console.success(f"Server '{server.label}' added to task '{task.name}'.")
        return updated

    def remove_server(self, task_id: str, label: str) -> Task:
        task = self._require_task(task_id)
        updated = task.model_copy(update={"servers": [s for s in task.servers if s.label != label]})
        self._replace(updated)
        console.info(f"Server '{label}' removed from task '{task.name}'.")
        return updated

    async def register_server(self, task_id: str, url: str, label: str, validator: ServerValidator,
                              require_approval: RequireApproval = "always",
                              selected_tools: Optional[List[str]] = None) -> MCPServerConfig:
        """
        Validates a candidate server through the provider and adds it to the task.
        Selected tools become the allow-list; an empty selection allows all tools.
        Raises ServerValidationError when validation fails, nothing is added then.
        """
        url, label = url.strip(), label.strip()
        if not url or not label:
            raise ValueError("Server URL and Label are required.")
        task = self._require_task(task_id)
        if any(existing.label == label for existing in task.servers):
            raise DuplicateServerError(f"Server label '{label}' is already used in task '{task.name}'.")

        result = await validator(url, label)
        tools = result.tools if selected_tools is None else [t for t in result.tools if t in selected_tools]
        server = MCPServerConfig(
            label=label,
            url=url,
            allowed_tools=tools or None,
            require_approval=require_approval,
            suggested_prompts=result.suggested_prompts,
        )
        self.add_server(task_id, server)
        return server

    def tool_descriptors(self, task: Task) -> List[ToolDescriptor]:
        """Maps a task's servers to the tool descriptors sent with every request."""
        return [
            ToolDescriptor(
                server_label=server.label,
                server_url=server.url,
                allowed_tools=server.allowed_tools,
                require_approval=server.require_approval,
            )
            for server in task.servers
        ]

    def _replace(self, updated: Task):
        self._tasks = [updated if task.id == updated.id else task for task in self._tasks]

    def _notify(self, previous: Optional[Task], current: Optional[Task]):
        for listener in list(self._listeners):
            listener(previous, current)
