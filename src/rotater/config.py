import os
from dotenv import load_dotenv

load_dotenv()

# Provider (Groq) credential and models
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
GROQ_GEO_MODEL = os.getenv("GROQ_GEO_MODEL", "openai/gpt-oss-20b")
GROQ_INSIGHTS_MODEL = os.getenv("GROQ_INSIGHTS_MODEL", "openai/gpt-oss-120b")
GROQ_CHAT_MODEL = os.getenv("GROQ_CHAT_MODEL", "openai/gpt-oss-20b")
GROQ_TTS_MODEL = os.getenv("GROQ_TTS_MODEL", "playai-tts")
GROQ_TTS_VOICE = os.getenv("GROQ_TTS_VOICE", "Fritz-PlayAI")

# When set, the bridge talks to a remote proxy instead of calling it in-process
AI_PROXY_URL = os.getenv("AI_PROXY_URL")
AI_PROXY_TIMEOUT = float(os.getenv("AI_PROXY_TIMEOUT", "120"))

# NASA POWER
POWER_MONTHLY_URL = os.getenv(
    "POWER_MONTHLY_URL", "https://power.larc.nasa.gov/api/temporal/monthly/point"
)
POWER_TIMEOUT = float(os.getenv("POWER_TIMEOUT", "30"))

# Dashboard defaults
DEFAULT_LAT = 20.5937
DEFAULT_LON = 78.9629
DEFAULT_EPOCH_YEARS = 5
INSIGHT_WINDOW_MONTHS = 24
TOAST_SECONDS = 8
SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "3600"))
SESSION_MAX = int(os.getenv("SESSION_MAX", "1000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"
    ).split(",")
    if origin.strip()
]
