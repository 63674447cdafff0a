"""Streamlit screens for the onboarding form."""
