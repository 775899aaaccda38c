"""Configuration management for Meta Surfer."""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Central configuration for Meta Surfer."""

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent.parent
    DATA_DIR = Path(os.getenv("METASURFER_DATA_DIR", Path.home() / ".metasurfer")).expanduser()
    LOG_DIR = Path(os.getenv("METASURFER_LOG_DIR", "logs"))
    LOG_LEVEL = os.getenv("METASURFER_LOG_LEVEL", "INFO")

    # Provider
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
    LITELLM_MODEL = os.getenv("METASURFER_MODEL", "gemini/gemini-1.0-pro")

    # Generation settings
    TEMPERATURE = float(os.getenv("METASURFER_TEMPERATURE", "0.7"))
    TOP_K = int(os.getenv("METASURFER_TOP_K", "40"))
    TOP_P = float(os.getenv("METASURFER_TOP_P", "0.95"))
    MAX_OUTPUT_TOKENS = int(os.getenv("METASURFER_MAX_OUTPUT_TOKENS", "1024"))

    # Published provider quota, shown to the user but not enforced
    PROVIDER_LIMITS = "15 RPM, 32,000 TPM, 1,500 RPD"

    # Development settings
    DEBUG = os.getenv("DEBUG", "false").lower() == "true"

    @classmethod
    def ensure_directories(cls) -> None:
        """Ensure all required directories exist."""
        cls.DATA_DIR.mkdir(parents=True, exist_ok=True)

    @classmethod
    def validate_api_keys(cls) -> dict[str, bool]:
        """Validate that required API keys are present."""
        return {"gemini": bool(cls.GEMINI_API_KEY)}

    @classmethod
    def get_summary(cls) -> dict[str, Any]:
        """Get configuration summary for debugging."""
        return {
            "project_root": str(cls.PROJECT_ROOT),
            "data_dir": str(cls.DATA_DIR),
            "log_dir": str(cls.LOG_DIR),
            "log_level": cls.LOG_LEVEL,
            "api_keys_configured": cls.validate_api_keys(),
            "model": cls.LITELLM_MODEL,
            "generation": {
                "temperature": cls.TEMPERATURE,
                "top_k": cls.TOP_K,
                "top_p": cls.TOP_P,
                "max_output_tokens": cls.MAX_OUTPUT_TOKENS,
            },
            "debug": cls.DEBUG,
        }
