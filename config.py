"""App-wide configuration and environment settings."""

import os

try:
    import streamlit as st
    from streamlit.errors import StreamlitAPIException
except ImportError:
    st = None
from dotenv import load_dotenv

load_dotenv()  # Load from .env file

def get_secret(key, default=None):
    """Try st.secrets first, then os.getenv."""
    if st is not None:
        try:
            # Accessing st.secrets raises if there is no secrets.toml locally
            if key in st.secrets:
                return st.secrets[key]
        except (FileNotFoundError, AttributeError, KeyError, StreamlitAPIException):
            pass
    return os.getenv(key, default)

# OTP challenges
OTP_LENGTH = 6
OTP_TTL_SECONDS = int(os.getenv("OTP_TTL_SECONDS", "300"))
OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))

# Flow limits
MAX_STEPS_GUARD = 25  # Hard terminate if exceeded

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# LangSmith
LANGSMITH_TRACING = os.getenv("LANGSMITH_TRACING", "false").lower() in ("true", "1")
LANGSMITH_PROJECT = os.getenv("LANGSMITH_PROJECT", "election-verification")
LANGSMITH_API_KEY = get_secret("LANGSMITH_API_KEY", "")

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
