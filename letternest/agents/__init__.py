"""LangGraph node functions for the newsletter pipeline."""
