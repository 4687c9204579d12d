"""
Storage layer for devassist projects and settings.
"""
from .base import BaseStorage
from .projects import ProjectStorage
from .credentials import CredentialStorage
