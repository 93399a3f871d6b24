from .settings import CaptureConfig, load_config, create_example_env_file, setup_logging

__all__ = ["CaptureConfig", "load_config", "create_example_env_file", "setup_logging"]
