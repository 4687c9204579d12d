"""
API endpoints for devassist projects and sessions.
"""
# Re-export routers for easy import
from . import projects
from . import session
from . import settings
