"""
Configuration module for the invoicing service.
"""
from .settings import InvoicingConfig, get_config, load_config, reload_config

__all__ = ["InvoicingConfig", "get_config", "load_config", "reload_config"]
