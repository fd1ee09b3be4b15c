DEFAULT_BRAND_NAME = "SaintSal™"

MODEL_GPT_5 = "gpt-5"
MODEL_CLAUDE_HAIKU_4_5 = "claude-haiku-4-5-20251001"
MODEL_GEMINI_2_5_FLASH = "gemini-2.5-flash"

DONE_SENTINEL = "[DONE]"

EVENT_CHUNK = "chunk"
EVENT_STEP = "step"
EVENT_STEP_COMPLETE = "step_complete"
EVENT_COMPLETE = "complete"
EVENT_ERROR = "error"
EVENT_WEB_SEARCH_START = "web_search_start"
EVENT_WEB_SEARCH_COMPLETE = "web_search_complete"

WIRE_EVENT_TYPES = frozenset(
    {
        EVENT_CHUNK,
        EVENT_STEP,
        EVENT_STEP_COMPLETE,
        EVENT_COMPLETE,
        EVENT_ERROR,
        EVENT_WEB_SEARCH_START,
        EVENT_WEB_SEARCH_COMPLETE,
    }
)

LEG_PRIMARY = "gpt"
LEG_SECONDARY = "claude"

SINGLE_STREAM_PATH = "/ai/chat-completion-stream"
DUAL_STREAM_PATH = "/ai/dual-orchestration-stream"
CHAT_COMPLETION_PATH = "/ai/chat-completion"
GEMINI_COMPLETION_PATH = "/ai/gemini-completion"
WEB_SEARCH_PATH = "/ai/web-search"
SCRAPE_URL_PATH = "/ai/scrape-url"
