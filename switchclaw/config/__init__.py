"""Configuration module for switchclaw."""

from switchclaw.config.loader import get_config_path, load_config, merge_config
from switchclaw.config.schema import ChannelConfig, Config, GroupConfig

__all__ = ["ChannelConfig", "Config", "GroupConfig", "load_config", "get_config_path", "merge_config"]
