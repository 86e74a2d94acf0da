# Study Assistant Application
# A FastAPI-based backend for AI study tools (solver, explainer, summarizer,
# question generator) with study history stored in Supabase

__version__ = "1.0.0"
__author__ = "Study Assistant Team"
__description__ = "AI-powered study tools with saved study sessions"
