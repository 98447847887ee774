"""Global pytest configuration."""

import os

# Keep tests hermetic: in-memory persistence, no LLM key, fake engine host
os.environ.pop("DATABASE_URL", None)
os.environ.pop("OPENAI_API_KEY", None)
os.environ.setdefault("AI_ENGINE_BASE_URL", "http://ai-engine.test")
os.environ.setdefault("TIMETABLE_API_URL", "http://timetable.test/api/timetable")
