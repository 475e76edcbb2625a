from .client import ChatSession, OfficialChatBackend, ProxyChatBackend, create_session
from .continuation import merge_continuation, needs_continuation
from .conversation import Conversation, process_unit, send_chained
from .runner import HookGPTRunner, is_review_passed
