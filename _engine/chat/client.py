import json
import queue
import threading
import time
import uuid
from typing import Any, Callable, Dict, Iterator, List, Optional

import requests
from rich import print as rprint

from _data.openai import CHARS_PER_TOKEN, OPENAI_API_URL, REQUEST_TIMEOUT
from _engine.console import TAG
from _types.config import UserOptions
from _types.errors import RemoteError, RequestCancelledError, RequestTimeoutError
from _types.model import ChatMessage, ParentContext

ProgressSink = Callable[[str], None]

# Seconds allowed to open the connection, the rest of the budget is for the reply
CONNECT_TIMEOUT = 10
# Seconds between cancellation and deadline checks while the server is silent
POLL_INTERVAL = 0.1

_END_OF_STREAM = object()


def _check_interrupted(cancel: Optional[threading.Event], deadline: float, timeout: float) -> None:
    if cancel is not None and cancel.is_set():
        raise RequestCancelledError("Request was cancelled")
    if time.monotonic() > deadline:
        raise RequestTimeoutError(f"Request timed out after {timeout} seconds")


class _ResponseReader(threading.Thread):
    """
    Runs the blocking POST on its own thread and hands every streamed line,
    then `_END_OF_STREAM`, to the caller through `lines`. Errors are handed
    over the same way and raised again on the caller's thread.
    """

    def __init__(
        self,
        http: requests.Session,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str],
        timeout: float,
    ) -> None:
        super().__init__(name="hookgpt-response-reader", daemon=True)
        self.http = http
        self.url = url
        self.payload = payload
        self.headers = headers
        self.timeout = timeout
        self.lines: "queue.Queue[Any]" = queue.Queue()
        self.response: Optional[requests.Response] = None
        self._closed = threading.Event()

    def run(self) -> None:
        try:
            with self.http.post(
                self.url,
                json=self.payload,
                headers=self.headers,
                stream=True,
                timeout=(CONNECT_TIMEOUT, self.timeout),
            ) as response:
                self.response = response
                if response.status_code != 200:
                    raise RemoteError(
                        f"Chat API error {response.status_code}: {response.text[:2000]}",
                        status_code=response.status_code,
                    )
                for line in response.iter_lines(decode_unicode=True):
                    if self._closed.is_set():
                        break
                    self.lines.put(line)
        except requests.exceptions.Timeout as e:
            self.lines.put(RequestTimeoutError(f"Request timed out: {e}"))
        except requests.exceptions.RequestException as e:
            self.lines.put(RemoteError(f"Network or API request failed: {e}"))
        except Exception as e:
            self.lines.put(e)
        finally:
            self.lines.put(_END_OF_STREAM)

    def close(self) -> None:
        """Drop the connection; whatever the thread reads afterwards is ignored."""
        self._closed.set()
        if self.response is not None:
            self.response.close()


def stream_events(
    http: requests.Session,
    url: str,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    cancel: Optional[threading.Event] = None,
    timeout: float = REQUEST_TIMEOUT,
) -> Iterator[Dict[str, Any]]:
    """
    POST `payload` and yield every JSON event of the server-sent event stream.

    Stops at the `[DONE]` marker. The request runs on a reader thread, so
    the cancellation token and the deadline are honoured within
    `POLL_INTERVAL` even while the server has not answered yet.

    Raises:
        RequestTimeoutError: The whole exchange took longer than `timeout`.
        RequestCancelledError: `cancel` was set.
        RemoteError: Connection failure or a non-200 answer.
    """
    deadline = time.monotonic() + timeout
    _check_interrupted(cancel, deadline, timeout)
    reader = _ResponseReader(http, url, payload, headers, timeout)
    reader.start()
    try:
        while True:
            _check_interrupted(cancel, deadline, timeout)
            try:
                line = reader.lines.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue
            if line is _END_OF_STREAM:
                return
            if isinstance(line, Exception):
                raise line
            if not line or not line.startswith("data:"):
                continue
            data = line[len("data:") :].strip()
            if data == "[DONE]":
                return
            try:
                yield json.loads(data)
            except json.JSONDecodeError:
                # The proxy interleaves non-JSON keep-alive lines
                continue
    finally:
        reader.close()


class OfficialChatBackend:
    """
    Chat completions endpoint, authenticated with an API key.

    The endpoint is stateless, so sent and received messages are kept in an
    in-memory store for the lifetime of the process and the history of a
    thread is rebuilt from `parent_message_id` on every request.

    The rebuilt history is capped at `history_chars` characters (by default
    `openai_max_tokens` worth of text). The opening exchange, which carries
    the task instructions, is always kept; the oldest exchanges after it are
    dropped first.
    """

    def __init__(
        self,
        options: UserOptions,
        http: Optional[requests.Session] = None,
        url: str = OPENAI_API_URL,
        history_chars: Optional[int] = None,
    ) -> None:
        self.url = url
        self.completion_params = options.completion_params
        self.history_chars = history_chars or options.openai_max_tokens * CHARS_PER_TOKEN
        self.http = http or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {options.api_key}",
            "Content-Type": "application/json",
        }
        self._store: Dict[str, Dict[str, Optional[str]]] = {}

    def _history(self, parent_message_id: Optional[str], text: str = "") -> List[Dict[str, str]]:
        thread: List[Dict[str, str]] = []
        message_id = parent_message_id
        while message_id and message_id in self._store:
            stored = self._store[message_id]
            thread.append({"role": stored["role"], "content": stored["content"]})
            message_id = stored["parent_id"]
        thread.reverse()

        # task prompt and its reply, then user/assistant pairs
        head, turns = thread[:2], thread[2:]
        budget = self.history_chars - len(text) - sum(len(m["content"]) for m in head)
        start = len(turns)
        while start >= 2:
            size = len(turns[start - 2]["content"]) + len(turns[start - 1]["content"])
            if size > budget:
                break
            budget -= size
            start -= 2
        return head + turns[start:]

    def send(
        self,
        text: str,
        parent: Optional[ParentContext] = None,
        on_progress: Optional[ProgressSink] = None,
        cancel: Optional[threading.Event] = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> ChatMessage:
        parent_id = parent.parent_message_id if parent else None
        conversation_id = (parent.conversation_id if parent else None) or str(uuid.uuid4())
        messages = self._history(parent_id, text) + [{"role": "user", "content": text}]

        user_id = str(uuid.uuid4())
        reply_id = None
        reply_text = ""
        payload = {**self.completion_params, "messages": messages, "stream": True}
        for event in stream_events(self.http, self.url, payload, self.headers, cancel, timeout):
            reply_id = reply_id or event.get("id")
            choices = event.get("choices") or [{}]
            delta = (choices[0].get("delta") or {}).get("content")
            if delta:
                reply_text += delta
                if on_progress:
                    on_progress(reply_text)

        reply_id = reply_id or str(uuid.uuid4())
        self._store[user_id] = {"role": "user", "content": text, "parent_id": parent_id}
        self._store[reply_id] = {"role": "assistant", "content": reply_text, "parent_id": user_id}
        return ChatMessage(text=reply_text, id=reply_id, conversation_id=conversation_id)


class ProxyChatBackend:
    """ChatGPT web conversation endpoint behind a reverse proxy, authenticated with a session token."""

    def __init__(self, options: UserOptions, http: Optional[requests.Session] = None) -> None:
        self.url = options.openai_proxy_url
        self.model = options.model
        self.http = http or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {options.openai_session_token}",
            "Accept": "text/event-stream",
            "Content-Type": "application/json",
        }

    def send(
        self,
        text: str,
        parent: Optional[ParentContext] = None,
        on_progress: Optional[ProgressSink] = None,
        cancel: Optional[threading.Event] = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> ChatMessage:
        payload: Dict[str, Any] = {
            "action": "next",
            "messages": [
                {
                    "id": str(uuid.uuid4()),
                    "role": "user",
                    "content": {"content_type": "text", "parts": [text]},
                }
            ],
            "model": self.model,
            "parent_message_id": parent.parent_message_id if parent else str(uuid.uuid4()),
        }
        if parent and parent.conversation_id:
            payload["conversation_id"] = parent.conversation_id

        reply: Optional[ChatMessage] = None
        for event in stream_events(self.http, self.url, payload, self.headers, cancel, timeout):
            message = event.get("message") or {}
            if (message.get("author") or {}).get("role", "assistant") != "assistant":
                continue
            parts = (message.get("content") or {}).get("parts") or []
            if not parts or not message.get("id"):
                continue
            # Every event carries the full reply so far, not a delta
            reply = ChatMessage(
                text=parts[0],
                id=message["id"],
                conversation_id=event.get("conversation_id"),
            )
            if on_progress:
                on_progress(reply.text)

        if reply is None:
            raise RemoteError("Proxy returned no assistant message")
        return reply


class ChatSession:
    """
    The single `send` entry point used by the rest of hookgpt.

    Applies the security redaction and the request time bound, then hands
    the message to whichever backend was picked at construction.
    """

    def __init__(self, options: UserOptions, backend: Any) -> None:
        self.options = options
        self.backend = backend

    def send(
        self,
        text: str,
        parent: Optional[ParentContext] = None,
        on_progress: Optional[ProgressSink] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ChatMessage:
        secured_text = self.options.security_prompt(text)
        if self.options.debug:
            rprint(f"[dim]sending {len(secured_text)} chars, parent={parent}[/dim]")
        return self.backend.send(
            secured_text,
            parent=parent,
            on_progress=on_progress,
            cancel=cancel,
            timeout=REQUEST_TIMEOUT,
        )


def create_session(options: UserOptions, http: Optional[requests.Session] = None) -> ChatSession:
    """Pick the backend once: the proxy when a session token is configured, the official API otherwise."""
    rprint(f"{TAG} Using Model: [green]{options.model}[/green]")
    if options.send_by_proxy:
        backend: Any = ProxyChatBackend(options, http=http)
    else:
        backend = OfficialChatBackend(options, http=http)
    return ChatSession(options, backend)
