import os
import re
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, PrivateAttr, field_validator

from _data.openai import (
    DEFAULT_API_MODEL,
    DEFAULT_PROXY_MODEL,
    OPENAI_API_KEY_NAME,
    OPENAI_PROXY_URL,
    OPENAI_SESSION_TOKEN_NAME,
    REDACTED_PLACEHOLDER,
    STOP_SEQUENCES,
    TEMPERATURE,
    TOP_P,
)
from _engine.console import TAG, console
from _types.errors import ConfigurationError
from _types.model import ReadTypeKind, TaskKind


class UserOptions(BaseModel):
    """
    Immutable run configuration, assembled once in main() and handed to
    every component that needs it.
    """

    model_config = ConfigDict(frozen=True)

    debug: bool = False
    task: TaskKind = TaskKind.REVIEW
    security_regex: str = ""
    openai_key: str = ""
    openai_session_token: str = ""
    openai_proxy_url: str = OPENAI_PROXY_URL
    openai_model: str = ""
    openai_max_tokens: int = 4096
    custom_instructions: str = ""
    keep_conversation: bool = True
    # Read file options
    read_type: ReadTypeKind = ReadTypeKind.GIT
    read_git_status: str = "R,M,A"
    read_files_root_name: str = "src"
    read_file_extensions: str = ".py"
    # Test file options
    test_file_type: str = "test"
    test_file_name_extension: str = ".py"
    test_file_dir_name: str = "__test__"
    # Review options
    review_report_webhook: str = ""

    _model: str = PrivateAttr(default="")
    _security_pattern: Optional[re.Pattern] = PrivateAttr(default=None)

    @field_validator("security_regex")
    @classmethod
    def _check_security_regex(cls, value: str) -> str:
        if value:
            try:
                re.compile(value, re.IGNORECASE)
            except re.error as e:
                raise ValueError(f"SECURITY_REGEX is not a valid regular expression: {e}") from e
        return value

    def model_post_init(self, __context: Any) -> None:
        self._model = self._resolve_model()
        if self.security_regex:
            self._security_pattern = re.compile(self.security_regex, re.IGNORECASE)

    def _resolve_model(self) -> str:
        if self.send_by_proxy:
            if self.openai_model == DEFAULT_API_MODEL:
                console.print(
                    f"[warning]{TAG} {DEFAULT_API_MODEL} can not be used through the proxy, "
                    f"using {DEFAULT_PROXY_MODEL} instead[/warning]"
                )
                return DEFAULT_PROXY_MODEL
            return self.openai_model or DEFAULT_PROXY_MODEL
        return self.openai_model or DEFAULT_API_MODEL

    @property
    def send_by_proxy(self) -> bool:
        """Use the reverse proxy only when both its URL and a session token are set."""
        return bool(
            self.openai_proxy_url
            and self.openai_session_token
            and self.openai_session_token != "undefined"
        )

    @property
    def model(self) -> str:
        """Model name sent with every request, resolved once at construction."""
        return self._model

    @property
    def api_key(self) -> str:
        if not self.openai_key:
            raise ConfigurationError(f"{OPENAI_API_KEY_NAME} is not set")
        return self.openai_key

    @property
    def completion_params(self) -> Dict[str, Any]:
        model = self.model
        if not model:
            raise ConfigurationError("openai model is not set")
        return {
            "temperature": TEMPERATURE,
            "top_p": TOP_P,
            "stop": list(STOP_SEQUENCES),
            "model": model,
            "max_tokens": self.openai_max_tokens,
        }

    @property
    def read_files_root(self) -> str:
        if not self.read_files_root_name:
            raise ConfigurationError("READ_FILES_ROOT_NAME is not set")
        return os.path.join(os.getcwd(), self.read_files_root_name)

    @property
    def read_files_extensions(self) -> List[str]:
        if not self.read_file_extensions:
            raise ConfigurationError("READ_FILE_EXTENSIONS is not set")
        return [ext.strip() for ext in self.read_file_extensions.split(",") if ext.strip()]

    @property
    def read_git_statuses(self) -> List[str]:
        return [s.strip().upper() for s in self.read_git_status.split(",") if s.strip()]

    @property
    def test_file_name_suffix(self) -> str:
        """e.g. '.test.py'"""
        return f".{self.test_file_type}{self.test_file_name_extension}"

    def security_prompt(self, prompt: str) -> str:
        """Replace every match of the configured security regex before sending."""
        if self._security_pattern is None:
            return prompt
        return self._security_pattern.sub(REDACTED_PLACEHOLDER, prompt)


def _env_flag(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def options_from_env(env: Dict[str, str]) -> Dict[str, Any]:
    """Convert environment variables to UserOptions fields. Unset keys are left out."""
    mapping = {
        "SECURITY_REGEX": "security_regex",
        OPENAI_API_KEY_NAME: "openai_key",
        OPENAI_SESSION_TOKEN_NAME: "openai_session_token",
        "OPENAI_PROXY_URL": "openai_proxy_url",
        "OPENAI_MODEL": "openai_model",
        "OPENAI_MAX_TOKENS": "openai_max_tokens",
        "OPENAI_PROMPT": "custom_instructions",
        "READ_TYPE": "read_type",
        "READ_GIT_STATUS": "read_git_status",
        "READ_FILES_ROOT_NAME": "read_files_root_name",
        "READ_FILE_EXTENSIONS": "read_file_extensions",
        "TEST_FILE_TYPE": "test_file_type",
        "TEST_FILE_NAME_EXTENSION": "test_file_name_extension",
        "TEST_FILE_DIR_NAME": "test_file_dir_name",
        "REVIEW_REPORT_WEBHOOK": "review_report_webhook",
    }
    options: Dict[str, Any] = {
        field: env[key] for key, field in mapping.items() if env.get(key)
    }
    if "DEBUG" in env:
        options["debug"] = _env_flag(env.get("DEBUG"), False)
    if "KEEP_CONVERSATION" in env:
        options["keep_conversation"] = _env_flag(env.get("KEEP_CONVERSATION"), True)
    return options


def load_user_options(overrides: Optional[Dict[str, Any]] = None) -> UserOptions:
    """
    Build the run configuration.

    Priority, lowest first: field defaults, environment (after reading
    `.env` and `.env.local` from the working directory), explicit overrides.

    Raises:
        ConfigurationError: If a value fails validation (unknown task, bad number).
    """
    load_dotenv(os.path.join(os.getcwd(), ".env"))
    load_dotenv(os.path.join(os.getcwd(), ".env.local"))

    values = options_from_env(dict(os.environ))
    values.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        options = UserOptions(**values)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    if options.debug:
        console.print(
            f"user options: {options.model_dump(exclude={'openai_key', 'openai_session_token'})}",
            style="dim",
            markup=False,
        )
    return options
