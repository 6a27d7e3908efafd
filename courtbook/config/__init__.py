"""Configuration - environment settings, secrets and facility rules."""
