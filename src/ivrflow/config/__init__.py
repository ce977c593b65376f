"""Configuration module for ivrflow."""

from ivrflow.config.loader import ConfigLoader
from ivrflow.config.models import FlowConfig, FlowsConfig
from ivrflow.config.settings import CompilerSettings

__all__ = ["CompilerSettings", "ConfigLoader", "FlowConfig", "FlowsConfig"]
