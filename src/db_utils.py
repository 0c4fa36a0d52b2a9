"""
Shared configuration utilities.
Single source of truth for PostgreSQL connection-string resolution and
the insight-model settings.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_LLM_MODEL = "gemini/gemini-2.5-flash"


def get_conn_str() -> str:
    """Return PostgreSQL connection string.

    Checks POSTGRES_CONNECTION_STRING first, falls back to DATABASE_URL
    (Heroku standard).  Normalises postgres:// to postgresql:// for psycopg2.
    """
    url = os.getenv("POSTGRES_CONNECTION_STRING") or os.getenv("DATABASE_URL") or ""
    url = url.strip()
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return url


def get_llm_settings() -> dict:
    """Model name, API key and temperature for the narrative summarizer."""
    try:
        temperature = float(os.getenv("INSIGHTS_LLM_TEMPERATURE", "0.7"))
    except ValueError:
        temperature = 0.7
    return {
        "model": os.getenv("INSIGHTS_LLM_MODEL", DEFAULT_LLM_MODEL),
        "api_key": os.getenv("GOOGLE_API_KEY"),
        "temperature": temperature,
    }
