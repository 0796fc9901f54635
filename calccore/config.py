"""
Configuration for the calculator engine's external collaborators.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

from calccore.errors import SolverError

_env_path = Path(__file__).resolve().parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)
else:
    load_dotenv()


class Config:
    """Application configuration."""

    # Currency rates
    RATES_URL: str = os.getenv("CALC_RATES_URL", "https://api.exchangerate-api.com/v4/latest/{base}")
    RATES_BASE: str = os.getenv("CALC_RATES_BASE", "USD")
    RATES_TIMEOUT: float = float(os.getenv("CALC_RATES_TIMEOUT", "10.0"))

    # AI math solver
    SOLVER_MODEL: str = os.getenv("CALC_SOLVER_MODEL", "gemini-3-pro-preview")
    SOLVER_API_KEY: str | None = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")

    LOG_LEVEL: str = os.getenv("CALC_LOG_LEVEL", "INFO")

    @classmethod
    def validate_solver(cls) -> None:
        """Validate the AI solver credential."""
        if not cls.SOLVER_API_KEY:
            raise SolverError(
                "GEMINI_API_KEY not set. Please set it in .env file or environment variable.\n"
                "Create a .env file in the project root with: GEMINI_API_KEY=your_key_here"
            )
