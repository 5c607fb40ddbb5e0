"""Configuration for the Suzi question router."""
