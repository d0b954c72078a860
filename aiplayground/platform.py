"""
Messaging-platform adapter for AI Playground.

PlaygroundAPI is the plugin the host messaging client talks to. Every model
of the logged-in provider shows up as a contact; sending a message to a
thread streams the model's reply back as progressively updated message
state through the subscribed event handler.
"""

import logging
import threading
import time
import uuid
from dataclasses import asdict
from typing import Any, Callable, Iterator, Optional, Union

from .catalog import Catalog, ModelInfo
from .config import PlaygroundConfig, get_config
from .errors import ErrorBoundary, ErrorContext, format_error_for_log, format_error_for_user
from .prompts import history_to_messages, map_messages_to_prompt, map_text_to_prompt
from .providers import CompletionProvider, CompletionRequest, StreamFrame, create_provider
from .streaming import CallbackSet, CompletionResult, normalize_stream
from .types import (
    ACTION_ID,
    AI_SENDER_ID,
    RESERVED_EXTRA_KEYS,
    SELF_ID,
    ActivityType,
    CurrentUser,
    LoginResult,
    Message,
    Paginated,
    Participant,
    ServerEvent,
    StateSyncEvent,
    Thread,
    UserActivityEvent,
)

logger = logging.getLogger(__name__)

EventHandler = Callable[[list[ServerEvent]], None]
ProviderFactory = Callable[..., CompletionProvider]

TITLE_PROMPT = (
    "Generate a title for this conversation. Your response must be only the title. "
    "Consider the first message of user to be this :"
)


def _parse_number(value: str) -> Union[int, float]:
    """Parse a /set value the way a user types it."""
    number = float(value)
    return int(number) if number.is_integer() and "." not in value else number


class PlaygroundAPI:
    """Host-facing plugin: threads, messages, commands and streaming replies."""

    def __init__(
        self,
        catalog: Catalog,
        config: Optional[PlaygroundConfig] = None,
        provider_factory: ProviderFactory = create_provider,
    ):
        self.catalog = catalog
        self.config = config or get_config()
        self._provider_factory = provider_factory

        self.current_user: Optional[CurrentUser] = None
        self.provider_id: str = self.config.providers.default_provider
        self.api_key: Optional[str] = None
        self.client: Optional[CompletionProvider] = None

        self.threads: dict[str, Thread] = {}
        self.messages: dict[str, list[Message]] = {}
        self._event_handler: Optional[EventHandler] = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def init(self, session: Optional[dict[str, Any]]) -> None:
        """Restore a serialized session."""
        if not session:
            return
        self.current_user = CurrentUser(**session["user"])
        self.provider_id = session["provider"]
        self.api_key = session["api_key"]
        self.init_provider(self.provider_id)

    def login(self, creds: dict[str, Any]) -> LoginResult:
        """Log in with a provider id and API key.

        Args:
            creds: Login form values; {"custom": {"provider", "api_key", "label"}}

        Returns:
            LoginResult describing the outcome
        """
        custom = creds.get("custom") or {}
        if not custom.get("api_key") or not custom.get("provider"):
            return LoginResult(type="error", error_message="Invalid credentials")

        provider = custom["provider"]
        if self.catalog.get_provider(provider) is None:
            return LoginResult(type="error", error_message=f"Unknown provider: {provider}")

        self.provider_id = provider
        self.api_key = custom["api_key"]
        label = custom.get("label") or ""
        self.current_user = CurrentUser(
            id=f"{provider}-{uuid.uuid5(uuid.NAMESPACE_OID, self.api_key)}",
            display_text=f"{self.catalog.provider_name(provider)} {label}".strip(),
        )
        self.init_provider(provider)
        logger.info(f"Logged in to {provider}")
        return LoginResult(type="success")

    def init_provider(self, provider: str) -> None:
        """Drop the current client; the next request creates one for provider."""
        if self.client is not None:
            self.client.close()
        self.client = None
        self.provider_id = provider

    def _get_client(self) -> CompletionProvider:
        if self.client is None:
            self.client = self._provider_factory(self.provider_id, self.api_key, self.config)
        return self.client

    def serialize_session(self) -> dict[str, Any]:
        """Serialize the session so init() can restore it."""
        return {
            "user": asdict(self.current_user) if self.current_user else None,
            "provider": self.provider_id,
            "api_key": self.api_key,
        }

    def get_current_user(self) -> Optional[CurrentUser]:
        return self.current_user

    def dispose(self) -> None:
        """Release the provider client."""
        if self.client is not None:
            self.client.close()
            self.client = None

    def subscribe_to_events(self, handler: EventHandler) -> None:
        """Register the callback that receives server events."""
        self._event_handler = handler

    def _emit(self, events: list[ServerEvent]) -> None:
        if self._event_handler is not None:
            self._event_handler(events)

    # ------------------------------------------------------------------
    # Threads and messages
    # ------------------------------------------------------------------

    def get_threads(self, inbox_name: str = "normal") -> Paginated:
        if inbox_name == "requests":
            return Paginated(items=[])
        with self._lock:
            return Paginated(items=list(self.threads.values()))

    def get_thread(self, thread_id: str) -> Optional[Thread]:
        return self.threads.get(thread_id)

    def get_messages(self, thread_id: str) -> Paginated:
        with self._lock:
            items = sorted(self.messages.get(thread_id, []), key=lambda m: m.timestamp)
        return Paginated(items=items)

    def search_users(self, query: str = "") -> list[ModelInfo]:
        """List the current provider's models, optionally filtered by name."""
        query = query.lower()
        return [
            model for model in self.catalog.models_for(self.provider_id)
            if query in model.full_name.lower() or query in model.id.lower()
        ]

    def _require_model(self, model_id: str) -> ModelInfo:
        model = self.catalog.get_model(model_id, self.provider_id)
        if model is None:
            raise ValueError(f"Unknown model {model_id!r} for provider {self.provider_id}")
        return model

    def _default_message(self, model: ModelInfo) -> Message:
        return Message(
            id=str(uuid.uuid4()),
            text=f"This is the start of your conversation with {model.full_name}. You can ask it anything you want!",
            sender_id=ACTION_ID,
            is_action=True,
            thread_id=model.id,
        )

    def create_thread(self, user_ids: list[str], title: Optional[str] = None) -> Thread:
        """Start a conversation with the model named by user_ids[0]."""
        model_id = user_ids[0]
        model = self._require_model(model_id)

        thread = Thread(
            id=str(uuid.uuid4()),
            description=f"Chat with {model_id}",
            title=title,
            participants=[Participant(id=model_id, full_name=f"{model.full_name} ({int(time.time() * 1000)})")],
            extra={
                "ai_model_id": model_id,
                "title_generated": False,
                "prompt_type": model.prompt_type,
                "model_type": model.model_type,
                **self.catalog.model_options(model_id, self.provider_id),
            },
        )
        with self._lock:
            self.threads[thread.id] = thread
            self.messages[thread.id] = [self._default_message(model)]
        logger.info(f"Created thread {thread.id} with {model_id}")
        return thread

    def _thread(self, thread_id: str) -> Thread:
        thread = self.threads.get(thread_id)
        if thread is None:
            raise KeyError(f"Unknown thread: {thread_id}")
        return thread

    def _option_keys(self, thread: Thread) -> list[str]:
        return [k for k in thread.extra if k not in RESERVED_EXTRA_KEYS]

    def _append_message(self, thread_id: str, message: Message) -> None:
        with self._lock:
            self.messages.setdefault(thread_id, []).append(message)

    def _upsert_message(self, thread_id: str, message: Message) -> None:
        self._emit([StateSyncEvent(
            object_name="message",
            mutation_type="upsert",
            entries=[message],
            thread_id=thread_id,
        )])

    def send_command_message(self, thread_id: str, text: str) -> Message:
        """Add a command reply (shown as an action message) to a thread."""
        message = Message(
            id=str(uuid.uuid4()),
            text=text,
            sender_id=ACTION_ID,
            is_sender=True,
            is_action=True,
            thread_id=thread_id,
        )
        self._append_message(thread_id, message)
        self._upsert_message(thread_id, message)
        return message

    def _handle_command(self, thread: Thread, text: str) -> bool:
        """Run a slash command. Returns False when text is not a command."""
        option_keys = self._option_keys(thread)
        extra = thread.extra

        if text in ("/clear", "/reset"):
            model = self._require_model(extra["ai_model_id"])
            with self._lock:
                self.messages[thread.id] = [self._default_message(model)]
            extra["title_generated"] = False
            return True

        if text.startswith("/set"):
            parts = text.split()
            if len(parts) != 3 or parts[1] not in option_keys:
                key = parts[1] if len(parts) > 1 else ""
                self.send_command_message(thread.id, f"Key {key} not assignable for this model")
                logger.info(f"Invalid option key: {key}")
                return True
            _, key, value = parts
            try:
                extra[key] = _parse_number(value)
            except ValueError:
                self.send_command_message(thread.id, f"Value {value} is not a number")
                return True
            self.send_command_message(thread.id, f"Set {key} to {value}")
            return True

        if text.startswith("/help"):
            lines = ["/clear reset the conversation", "/params shows the current parameters"]
            lines.extend(f"/set {k} {extra[k]}" for k in option_keys)
            self.send_command_message(thread.id, "\n".join(lines))
            return True

        if text.startswith("/param"):
            self.send_command_message(thread.id, "\n".join(f"{k} : {extra[k]}" for k in option_keys))
            return True

        return False

    def send_message(
        self,
        thread_id: str,
        text: str,
        pending_message_id: Optional[str] = None,
    ) -> Union[bool, list[Message]]:
        """Handle a message the user sent to a model.

        Slash commands are answered locally. Anything else is sent to the
        model and the reply is streamed into the thread.

        Returns:
            False for an empty message, True for a command, otherwise the
            list containing the stored user message
        """
        if not text:
            return False

        thread = self._thread(thread_id)
        if self._handle_command(thread, text):
            return True

        extra = thread.extra
        model_id = extra["ai_model_id"]

        message = Message(
            id=pending_message_id or str(uuid.uuid4()),
            text=text,
            sender_id=SELF_ID,
            is_sender=True,
            is_delivered=True,
            thread_id=thread_id,
        )
        self._emit([UserActivityEvent(
            thread_id=thread_id,
            participant_id=model_id,
            activity_type=ActivityType.CUSTOM,
            custom_label="thinking",
            duration_ms=self.config.chat.thinking_duration_ms,
        )])
        self._append_message(thread_id, message)
        # The user message must be published before the reply starts
        self._upsert_message(thread_id, message)

        reply, callbacks = self._reply_callbacks(thread_id, model_id)
        if extra["model_type"] == "completion":
            result = self.get_ai_completion(text, thread_id, callbacks)
        else:
            result = self.get_ai_chat_completion(thread_id, callbacks)

        # A stream that produced no frames never finalizes the reply
        if result is not None and not reply.is_delivered:
            logger.warning(f"{model_id} returned an empty stream for thread {thread_id}")
            self._emit([UserActivityEvent(
                thread_id=thread_id, participant_id=model_id, activity_type=ActivityType.NONE,
            )])

        if self.config.chat.generate_titles and not extra.get("title_generated"):
            self.generate_title(thread_id, text)

        return [message]

    def _reply_callbacks(self, thread_id: str, model_id: str) -> tuple[Message, CallbackSet]:
        """Callbacks that stream a model reply into the thread.

        The reply is marked delivered once the stream finalizes it.
        """
        reply = Message(
            id=str(uuid.uuid4()),
            text=" ",
            sender_id=AI_SENDER_ID,
            thread_id=thread_id,
        )

        def on_start() -> None:
            self._append_message(thread_id, reply)
            self._upsert_message(thread_id, reply)

        def on_token(text: str) -> None:
            reply.text = text
            self._upsert_message(thread_id, reply)

        def on_final(text: str) -> None:
            reply.text = text
            reply.is_delivered = True
            self._emit([
                StateSyncEvent(object_name="message", mutation_type="upsert", entries=[reply], thread_id=thread_id),
                UserActivityEvent(thread_id=thread_id, participant_id=model_id, activity_type=ActivityType.NONE),
            ])

        return reply, CallbackSet(on_start=on_start, on_token=on_token, on_final=on_final)

    # ------------------------------------------------------------------
    # Completions
    # ------------------------------------------------------------------

    def _run_stream(
        self,
        operation: str,
        frames: Callable[[], Iterator[StreamFrame]],
        callbacks: CallbackSet,
        on_error: Callable[[ErrorContext], None],
    ) -> Optional[CompletionResult]:
        with ErrorBoundary(operation, on_error=on_error) as boundary:
            return normalize_stream(frames(), callbacks)
        if boundary.has_error:
            logger.warning(format_error_for_log(boundary.error_context))
        return None

    def _request_options(self, thread: Thread, model_id: str) -> dict[str, Any]:
        # Per-thread overrides only apply to the thread's own model
        if model_id != thread.extra["ai_model_id"]:
            return self.catalog.model_options(model_id, self.provider_id)
        overrides = {k: thread.extra[k] for k in self._option_keys(thread)}
        return self.catalog.model_options(model_id, self.provider_id, overrides)

    def get_ai_chat_completion(
        self,
        thread_id: str,
        callbacks: CallbackSet,
        model_id: Optional[str] = None,
    ) -> Optional[CompletionResult]:
        """Stream a chat reply for the thread's history.

        Failures are reported into the thread via send_error.
        """
        def frames() -> Iterator[StreamFrame]:
            thread = self._thread(thread_id)
            selected = model_id or thread.extra["ai_model_id"]
            with self._lock:
                history = list(self.messages.get(thread_id, []))
            chat = history_to_messages(history)
            request = CompletionRequest(
                model=selected,
                messages=chat,
                prompt=map_messages_to_prompt(history, thread.extra.get("prompt_type", "default")),
                prompt_text=chat[-1]["content"] if chat else "",
                options=self._request_options(thread, selected),
            )
            return self._get_client().stream_chat(request)

        return self._run_stream(
            "chat_completion", frames, callbacks,
            on_error=lambda ctx: self.send_error(thread_id, ctx),
        )

    def get_ai_completion(
        self,
        user_input: str,
        thread_id: str,
        callbacks: CallbackSet,
        model_id: Optional[str] = None,
        report_errors: bool = True,
    ) -> Optional[CompletionResult]:
        """Stream a single-turn completion for user_input."""
        def frames() -> Iterator[StreamFrame]:
            thread = self._thread(thread_id)
            selected = model_id or thread.extra["ai_model_id"]
            request = CompletionRequest(
                model=selected,
                prompt=map_text_to_prompt(user_input, selected),
                prompt_text=user_input,
                options=self._request_options(thread, selected),
            )
            return self._get_client().stream_completion(request)

        def on_error(ctx: ErrorContext) -> None:
            if report_errors:
                self.send_error(thread_id, ctx)

        return self._run_stream("completion", frames, callbacks, on_error=on_error)

    def send_error(self, thread_id: str, context: ErrorContext) -> Message:
        """Show a failed request in the thread and clear the activity indicator."""
        message = Message(
            id=f"error-{uuid.uuid4()}",
            text=format_error_for_user(context),
            sender_id="none",
            is_action=True,
            thread_id=thread_id,
        )
        self._append_message(thread_id, message)
        self._emit([
            UserActivityEvent(thread_id=thread_id, participant_id=AI_SENDER_ID, activity_type=ActivityType.NONE),
            StateSyncEvent(object_name="message", mutation_type="upsert", entries=[message], thread_id=thread_id),
        ])
        return message

    def generate_title(self, thread_id: str, first_prompt: str) -> Optional[str]:
        """Name the thread from the user's first message.

        Uses the provider's title model; providers without one keep the
        default title. Failures are logged, not shown.
        """
        title_model = self.catalog.title_model_for(self.provider_id)
        if title_model is None:
            logger.debug(f"No title model for {self.provider_id}")
            return None

        thread = self._thread(thread_id)
        max_length = self.config.chat.title_max_length if self.provider_id == "fireworks" else None

        def clean(text: str) -> str:
            # Some models wrap the title in quotes
            title = text.replace('"', "").strip()
            return title[:max_length].strip() if max_length else title

        def publish(title: str) -> None:
            self._emit([StateSyncEvent(
                object_name="thread",
                mutation_type="update",
                entries=[{"id": thread_id, "title": title}],
            )])

        def on_final(text: str) -> None:
            thread.title = clean(text)
            thread.extra["title_generated"] = True
            publish(thread.title)

        callbacks = CallbackSet(
            on_start=lambda: publish(""),
            on_token=lambda text: publish(clean(text)),
            on_final=on_final,
        )
        result = self.get_ai_completion(
            TITLE_PROMPT + first_prompt,
            thread_id,
            callbacks,
            model_id=title_model,
            report_errors=False,
        )
        return thread.title if result is not None else None
