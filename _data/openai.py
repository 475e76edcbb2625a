OPENAI_API_URL: str = "https://api.openai.com/v1/chat/completions"
OPENAI_PROXY_URL: str = "https://bypass.churchless.tech/api/conversation"

OPENAI_API_KEY_NAME: str = "OPENAI_API_KEY"
OPENAI_SESSION_TOKEN_NAME: str = "OPENAI_SESSION_TOKEN"

DEFAULT_API_MODEL: str = "gpt-3.5-turbo"
DEFAULT_PROXY_MODEL: str = "text-davinci-002-render-sha"

# Completion parameters shared by every request
TEMPERATURE: float = 0
TOP_P: float = 0.4
STOP_SEQUENCES: list = ["###"]

# Upper bound for a single request, in seconds
REQUEST_TIMEOUT: int = 60 * 5

# Rough size of a token, used to keep chat history within the model budget
CHARS_PER_TOKEN: int = 4

CONTINUE_MESSAGE: str = "continue"
REDACTED_PLACEHOLDER: str = "REMOVED"
FAILURE_MESSAGE: str = "[hookgpt] call OpenAI API failed!"

REVIEW_PASSED_PATTERN: str = r"perfect!"
REVIEW_FILE_NAME: str = ".hookgpt_review.md"
