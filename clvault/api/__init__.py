"""
Read-only status API for clvault
"""

from .main import create_app
