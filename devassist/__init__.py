"""
devassist: project-based code assistant backed by Google Gemini.
"""
__version__ = "0.1.0"
