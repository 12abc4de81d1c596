# hajimi: Centralize environment-driven configuration constants so other modules can import them without circular dependencies. Values here are the lowest-precedence defaults; settings.yaml and CLI flags override them.

import os

# Gemini env (Generative Language API)
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")  # Gemini model id
GEMINI_BASE_URL = os.environ.get("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")

# Path to a text file holding the system instruction (empty disables it)
SYSTEM_PROMPT = os.environ.get("SYSTEM_PROMPT", "").strip()

# Generation knobs
TEMPERATURE = float(os.environ.get("HAJIMI_TEMPERATURE", "0.8"))
MAX_OUTPUT_TOKENS = int(os.environ.get("HAJIMI_MAX_OUTPUT_TOKENS", "8192"))

# Seconds to wait for the service before a request is considered timed out
REQUEST_TIMEOUT = int(os.environ.get("HAJIMI_REQUEST_TIMEOUT", "600") or "600")

# External editor used by /editor and /history
EDITOR = (
    os.environ.get("HAJIMI_EDITOR")
    or os.environ.get("VISUAL")
    or os.environ.get("EDITOR")
    or "vi"
).strip()

# Prompts shown by the input loop
USER_PROMPT = "\nuser:\n> "
CONTINUATION_PROMPT = "> "
CONTINUATION_MARKER = "\\"
