from rich.console import Console
from rich.theme import Theme

# Custom theme for consistent styling
custom_theme = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "bold red",
        "highlight": "magenta",
    }
)

console = Console(theme=custom_theme)
# Operator-visible error channel
error_console = Console(theme=custom_theme, stderr=True)

# Message prefix, escaped so rich does not read it as a markup tag
TAG = "\\[hookgpt]"
