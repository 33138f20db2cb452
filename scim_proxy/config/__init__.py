"""Configuration module for the SCIM proxy."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
