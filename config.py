"""
Configuration management for the Job Application Assistant.
Loads settings from environment variables / .env file.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

# Error log file (WARNING and ERROR from all loggers are appended here)
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")
ERROR_LOG_FILE = LOG_DIR / os.getenv("ERROR_LOG_FILE", "error_log.txt")
# Full LLM response log – every raw Ollama response is appended here for debugging
LLM_LOG_FILE = LOG_DIR / os.getenv("LLM_LOG_FILE", "llm_responses.log")
# Full LLM request log – the exact prompt sent to Ollama (system + user messages)
LLM_REQUEST_LOG_FILE = LOG_DIR / os.getenv("LLM_REQUEST_LOG_FILE", "llm_requests.log")

# Ensure the log directory exists
LOG_DIR.mkdir(parents=True, exist_ok=True)

# Flask
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")

# ── Ollama (local LLM) ─────────────────────────────────────────
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
# Model used when a request does not name one (llama3.2, phi3, mistral, qwen2.5 …)
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2")
OLLAMA_TIMEOUT = int(os.getenv("OLLAMA_TIMEOUT", "300"))
OLLAMA_TEMPERATURE = float(os.getenv("OLLAMA_TEMPERATURE", "0.1"))

# How many characters of a raw model reply end up in log lines / error previews
RAW_PREVIEW_CHARS = int(os.getenv("RAW_PREVIEW_CHARS", "300"))

# Bulk endpoints: number of pipelines run side by side
AI_BULK_WORKERS = int(os.getenv("AI_BULK_WORKERS", "4"))

# Seconds the installed-model list is cached for
MODELS_CACHE_TTL = int(os.getenv("MODELS_CACHE_TTL", "300"))

# ── Prompt input limits (characters taken from each stored record) ──
CV_PROMPT_CHARS = int(os.getenv("CV_PROMPT_CHARS", "3000"))
DOCUMENT_PROMPT_CHARS = int(os.getenv("DOCUMENT_PROMPT_CHARS", "5000"))
OFFER_PROMPT_CHARS = int(os.getenv("OFFER_PROMPT_CHARS", "5000"))
NOTES_PROMPT_CHARS = int(os.getenv("NOTES_PROMPT_CHARS", "1000"))

# Pasted job offers shorter than this are rejected before calling the model
OFFER_MIN_CHARS = int(os.getenv("OFFER_MIN_CHARS", "50"))

# Application statuses
APPLICATION_STATUSES = ["pending", "in_progress", "accepted", "rejected"]

# Document types the generator can produce
DOCUMENT_TYPES = ["cv", "cover_letter"]
