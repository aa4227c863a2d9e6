from .config import Config, SessionSettings, load_yaml_file

__all__ = ["Config", "SessionSettings", "load_yaml_file"]
