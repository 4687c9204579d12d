"""
General application configuration for devassist.

Most constants are read from the environment once at import time. This module
should be importable without triggering any side effects.
"""
import os

# Server configuration
DEFAULT_PORT = 7070
DEFAULT_HOST = "127.0.0.1"

# Model configuration
DEFAULT_MODEL = 'gemini-3-pro-preview'
TEMPERATURE = float(os.getenv('DEVASSIST_TEMPERATURE', '0.2'))
THINKING_BUDGET = int(os.getenv('DEVASSIST_THINKING_BUDGET', '2048'))


def get_model_name() -> str:
    """Model id, read at call time so CLI overrides apply."""
    return os.getenv('DEVASSIST_MODEL', DEFAULT_MODEL)


# Used when no key has been stored through the settings endpoint
API_KEY_ENV_VAR = 'GEMINI_API_KEY'

# Retry policy for rate-limited requests
MAX_RETRIES = 3
INITIAL_BACKOFF_SECONDS = 2.0

# Delay between a settled exchange and the write to the project store
SAVE_DEBOUNCE_SECONDS = 0.5

# Limits for archive extraction
MAX_FILE_SIZE_BYTES = 1024 * 100  # 100KB per file text limit
MAX_TOTAL_FILES = 500
IGNORED_DIRS = [
    'vendor',
    'node_modules',
    '.git',
    'storage',
    'public/build',
    'public/vendor',
]
ALLOWED_EXTENSIONS = [
    '.php',
    '.json',
    '.xml',
    '.yml',
    '.yaml',
    '.env',
    '.js',
    '.ts',
    '.vue',
    '.blade.php',
]
