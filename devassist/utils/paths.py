"""
Path utilities for devassist data storage.
"""
import os
from pathlib import Path

def get_devassist_home() -> Path:
    """Get the devassist home directory, creating if necessary."""
    # Allow override via environment variable
    if 'DEVASSIST_HOME' in os.environ:
        home = Path(os.environ['DEVASSIST_HOME'])
    else:
        home = Path.home() / '.devassist'

    home.mkdir(parents=True, exist_ok=True)
    return home

def get_projects_dir() -> Path:
    """Get the directory holding one JSON record per project."""
    return get_devassist_home() / 'projects'

def get_credentials_file() -> Path:
    return get_devassist_home() / 'credentials.json'
