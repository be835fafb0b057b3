"""ContentForge — headless content backend with a field materialization engine."""

__version__ = "0.1.0"
