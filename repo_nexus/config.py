"""Application configuration."""

import os
from dotenv import load_dotenv

load_dotenv()

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# "development" exposes the trending debug block
APP_ENV = os.getenv("APP_ENV", "production").lower()
DEBUG = APP_ENV == "development"

# API keys
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN")
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# Shared cache for 5 minutes, serve stale for up to 10 while revalidating
CACHE_CONTROL = "public, s-maxage=300, stale-while-revalidate=600"
